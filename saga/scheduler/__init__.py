"""Recurring-run scheduling."""

from saga.scheduler.recurrence import RecurrenceSchedule, ScheduleComputeError
from saga.scheduler.service import Clock, RunMetrics, SchedulerService, SchedulerState, SystemClock

__all__ = [
    "Clock",
    "RecurrenceSchedule",
    "RunMetrics",
    "ScheduleComputeError",
    "SchedulerService",
    "SchedulerState",
    "SystemClock",
]
