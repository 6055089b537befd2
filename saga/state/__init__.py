"""Durable processed-entry and feed-progress state."""

from saga.state.store import StateStore, StoreError

__all__ = ["StateStore", "StoreError"]
