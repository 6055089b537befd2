"""Digest run orchestration."""

from saga.pipeline.orchestrator import FeedOutcome, RunOrchestrator, RunReport

__all__ = ["FeedOutcome", "RunOrchestrator", "RunReport"]
