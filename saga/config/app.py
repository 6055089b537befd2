"""Application-level configuration model."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator

from saga.config.base import BaseConfig
from saga.config.email import EmailConfig
from saga.config.feeds import FeedConfig, FetchConfig
from saga.config.scheduler import SchedulerConfig
from saga.scheduler.recurrence import RecurrenceSchedule

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class AppConfig(BaseConfig):
    """Top-level runtime configuration."""

    schedule: str = Field(..., min_length=1, description="Cron expression for daemon runs")
    email: EmailConfig = Field(..., description="Mail delivery settings")
    feeds: list[FeedConfig] = Field(..., min_length=1, description="Feeds polled on every run")

    logging_level: LogLevel = Field("INFO", description="Loguru level name: DEBUG, INFO, WARNING, ERROR, ...")
    database_path: Path = Field(Path("database.db3"), description="SQLite file holding processed state")
    output_dir: Path | None = Field(Path("."), description="Directory receiving a copy of each EPUB")
    log_dir: Path | None = Field(None, description="Directory for the daemon's rotating log file")
    random_seed: int | None = Field(None, description="Seed for random fallback picks")

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)

    @model_validator(mode="after")
    def _validate_schedule(self) -> "AppConfig":
        RecurrenceSchedule.parse(self.schedule, timezone=self.scheduler.timezone)
        return self

    @model_validator(mode="after")
    def _validate_unique_feeds(self) -> "AppConfig":
        seen: set[str] = set()
        for feed in self.feeds:
            if feed.address in seen:
                raise ValueError(f"Feed '{feed.address}' is configured more than once")
            seen.add(feed.address)
        return self

    def resolve_paths(self, base_dir: Path) -> "AppConfig":
        """Return a copy whose relative paths are anchored at ``base_dir``."""

        def _anchor(path: Path | None) -> Path | None:
            if path is None or path.is_absolute():
                return path
            return (base_dir / path).resolve()

        return self.model_copy(
            update={
                "database_path": _anchor(self.database_path),
                "output_dir": _anchor(self.output_dir),
                "log_dir": _anchor(self.log_dir),
            }
        )


__all__ = ["AppConfig"]
