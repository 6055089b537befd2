"""Entry selection policy."""

from saga.selection.selector import eligible_candidates, select_entry

__all__ = ["eligible_candidates", "select_entry"]
