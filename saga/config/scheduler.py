"""Scheduler configuration models."""

from __future__ import annotations

from pydantic import Field

from .base import BaseConfig


class SchedulerConfig(BaseConfig):
    """Daemon-mode settings; the cron expression itself lives at the top level."""

    timezone: str = Field("UTC", description="Timezone the cron expression is evaluated in")
    retry_backoff_seconds: float = Field(
        60.0,
        gt=0,
        description="Wait before recomputing the next fire time after a failure",
    )
    max_schedule_failures: int | None = Field(
        None,
        ge=1,
        description="Consecutive fire-time failures tolerated before the daemon exits (unset = forever)",
    )


__all__ = ["SchedulerConfig"]
