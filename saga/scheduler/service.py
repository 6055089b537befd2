from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from time import perf_counter
from typing import Any, Callable, Protocol

from loguru import logger

from saga.scheduler.recurrence import RecurrenceSchedule, ScheduleComputeError


class Clock(Protocol):
    def now(self) -> datetime:
        """Current time as a timezone-aware datetime."""

    def sleep(self, seconds: float) -> None:
        """Block for ``seconds``."""


class SystemClock:
    """Wall-clock time and blocking sleeps."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class SchedulerState(str, Enum):
    IDLE = "idle"
    COMPUTING_NEXT = "computing_next"
    WAITING = "waiting"
    RUNNING = "running"


@dataclass(slots=True)
class RunMetrics:
    """Execution statistics for the scheduled run."""

    total_runs: int = 0
    success_count: int = 0
    failure_count: int = 0
    schedule_failure_count: int = 0
    last_status: str | None = None
    last_error: str | None = None
    last_start_time: datetime | None = None
    last_end_time: datetime | None = None
    last_duration_seconds: float | None = None
    next_run_time: datetime | None = None

    def record_start(self, start_time: datetime) -> None:
        self.last_start_time = start_time
        self.last_status = "running"
        self.last_error = None

    def record_success(self, end_time: datetime, duration_seconds: float) -> None:
        self.total_runs += 1
        self.success_count += 1
        self.last_status = "success"
        self.last_end_time = end_time
        self.last_duration_seconds = duration_seconds

    def record_failure(self, end_time: datetime, duration_seconds: float, error: str) -> None:
        self.total_runs += 1
        self.failure_count += 1
        self.last_status = "failure"
        self.last_error = error
        self.last_end_time = end_time
        self.last_duration_seconds = duration_seconds

    def snapshot(self) -> dict[str, Any]:
        return asdict(self)


class SchedulerService:
    """Drive a run callable on a cron schedule.

    The daemon cycles ``IDLE -> COMPUTING_NEXT -> WAITING -> RUNNING -> IDLE``;
    :meth:`step` performs exactly one transition. All time reads and waits go
    through ``clock`` so the loop can be exercised without real delays.

    Run failures are logged and recorded in :attr:`metrics` but never stop
    the daemon. Failing to compute the next fire time backs off for
    ``retry_backoff_seconds``; it only becomes fatal once
    ``max_schedule_failures`` consecutive failures have occurred.
    """

    def __init__(
        self,
        schedule: RecurrenceSchedule,
        run: Callable[[datetime], Any],
        *,
        clock: Clock | None = None,
        retry_backoff_seconds: float = 60.0,
        max_schedule_failures: int | None = None,
    ) -> None:
        self.schedule = schedule
        self._run = run
        self.clock = clock or SystemClock()
        self.retry_backoff_seconds = retry_backoff_seconds
        self.max_schedule_failures = max_schedule_failures
        self.state = SchedulerState.IDLE
        self.metrics = RunMetrics()
        self.completed_cycles = 0
        self._next_fire: datetime | None = None
        self._last_fire: datetime | None = None
        self._consecutive_schedule_failures = 0
        self._file_sink_id: int | None = None

    @property
    def next_fire_time(self) -> datetime | None:
        return self._next_fire

    def setup_logging_sink(self, log_dir: Path, level: str = "INFO") -> None:
        """Persist scheduler logs to a rotating file sink."""

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            self._file_sink_id = logger.add(
                log_dir / "saga.log",
                rotation="5 MB",
                retention=5,
                enqueue=True,
                serialize=True,
                level=level,
            )
        except OSError as exc:  # pragma: no cover - filesystem issues are environment-specific
            logger.warning("Failed to initialise scheduler file log sink: {}", exc)
            self._file_sink_id = None

    def step(self) -> SchedulerState:
        """Advance the state machine by one transition and return the new state."""

        if self.state is SchedulerState.IDLE:
            self.state = SchedulerState.COMPUTING_NEXT
        elif self.state is SchedulerState.COMPUTING_NEXT:
            self._compute_next()
        elif self.state is SchedulerState.WAITING:
            self._wait()
            self.state = SchedulerState.RUNNING
        elif self.state is SchedulerState.RUNNING:
            self._last_fire = self._next_fire
            logger.info("Running scheduled process...")
            self._execute(propagate=False)
            logger.info("Scheduled process finished.")
            self.completed_cycles += 1
            self.state = SchedulerState.IDLE
        return self.state

    def run_forever(self, max_cycles: int | None = None) -> None:
        """Daemon loop. Returns only after ``max_cycles`` runs when a limit is given."""

        logger.info("Using schedule: {}", self.schedule.expression)
        logger.info("Daemon started, waiting for next scheduled run...")
        target = None if max_cycles is None else self.completed_cycles + max_cycles
        while target is None or self.completed_cycles < target:
            self.step()

    def run_once(self) -> Any:
        """Single-shot mode: run immediately and propagate any error."""

        return self._execute(propagate=True)

    def get_metrics_snapshot(self) -> dict[str, Any]:
        return self.metrics.snapshot()

    def shutdown(self) -> None:
        logger.info("Scheduler shutting down.")
        if self._file_sink_id is not None:
            logger.remove(self._file_sink_id)
            self._file_sink_id = None

    def _compute_next(self) -> None:
        now = self.clock.now()
        reference = now
        if self._last_fire is not None:
            reference = max(now, self._last_fire)

        try:
            next_fire = self.schedule.next_fire_time(reference)
            if next_fire is None:
                raise ScheduleComputeError(
                    f"Schedule '{self.schedule.expression}' has no fire time after {reference.isoformat()}"
                )
        except Exception as exc:
            self._handle_schedule_failure(exc)
            self.state = SchedulerState.IDLE
            return

        self._consecutive_schedule_failures = 0
        self._next_fire = next_fire
        self.metrics.next_run_time = next_fire
        logger.info("Next run scheduled at: {}", next_fire.isoformat())
        self.state = SchedulerState.WAITING

    def _handle_schedule_failure(self, exc: Exception) -> None:
        self._consecutive_schedule_failures += 1
        self.metrics.schedule_failure_count += 1
        self._next_fire = None
        self.metrics.next_run_time = None
        logger.error(
            "Could not determine next schedule time ({} consecutive failures): {}",
            self._consecutive_schedule_failures,
            exc,
        )
        if (
            self.max_schedule_failures is not None
            and self._consecutive_schedule_failures >= self.max_schedule_failures
        ):
            if isinstance(exc, ScheduleComputeError):
                raise exc
            raise ScheduleComputeError(str(exc)) from exc
        logger.info("Retrying in {} seconds", self.retry_backoff_seconds)
        self.clock.sleep(self.retry_backoff_seconds)

    def _wait(self) -> None:
        assert self._next_fire is not None
        delay = (self._next_fire - self.clock.now()).total_seconds()
        if delay > 0:
            logger.debug("Sleeping {:.1f}s until {}", delay, self._next_fire.isoformat())
            self.clock.sleep(delay)
        else:
            logger.info("Scheduled time is now or in the past, running immediately.")

    def _execute(self, *, propagate: bool) -> Any:
        start_time = self.clock.now()
        self.metrics.record_start(start_time)
        timer_start = perf_counter()
        try:
            result = self._run(start_time)
        except Exception as exc:
            duration = perf_counter() - timer_start
            self.metrics.record_failure(self.clock.now(), duration, str(exc))
            logger.error("Error during scheduled process: {}", exc)
            if propagate:
                raise
            return None

        duration = perf_counter() - timer_start
        self.metrics.record_success(self.clock.now(), duration)
        logger.info("Run finished in {:.2f}s", duration)
        return result


__all__ = ["Clock", "RunMetrics", "SchedulerService", "SchedulerState", "SystemClock"]
