"""Cron expressions evaluated with APScheduler's ``CronTrigger``."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from apscheduler.triggers.cron import CronTrigger


# Smallest step past the reference so an exact match is not returned.
_PAST_REFERENCE = timedelta(microseconds=1)


class ScheduleComputeError(RuntimeError):
    """Raised when no next fire time can be derived from the schedule."""


# Field order for 5 (crontab), 6 (leading seconds) and 7 (trailing year) fields.
_FIELD_LAYOUTS: dict[int, tuple[str, ...]] = {
    5: ("minute", "hour", "day", "month", "day_of_week"),
    6: ("second", "minute", "hour", "day", "month", "day_of_week"),
    7: ("second", "minute", "hour", "day", "month", "day_of_week", "year"),
}


def _resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone '{name}'") from exc


@dataclass(frozen=True)
class RecurrenceSchedule:
    """A parsed cron expression able to compute successive fire instants."""

    expression: str
    trigger: CronTrigger

    @classmethod
    def parse(cls, expression: str, *, timezone: str = "UTC") -> "RecurrenceSchedule":
        """Parse a 5, 6 or 7 field cron expression.

        ``?`` is accepted as a synonym for ``*``. Day-of-week must use names
        such as ``mon-fri``: cron dialects disagree on which number is Sunday.
        Raises :class:`ValueError` for malformed expressions.
        """

        fields = expression.split()
        layout = _FIELD_LAYOUTS.get(len(fields))
        if layout is None:
            raise ValueError(
                f"Cron expression '{expression}' has {len(fields)} fields; expected 5, 6 or 7"
            )

        values = {name: ("*" if value == "?" else value) for name, value in zip(layout, fields)}
        if any(char.isdigit() for char in values["day_of_week"]):
            raise ValueError(
                f"Cron expression '{expression}' uses a numeric day of week; use names such as mon-fri"
            )
        tz = _resolve_timezone(timezone)
        try:
            trigger = CronTrigger(timezone=tz, **values)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Invalid cron expression '{expression}': {exc}") from exc
        return cls(expression=expression, trigger=trigger)

    def next_fire_time(self, after: datetime) -> datetime | None:
        """Return the first fire instant strictly after ``after``, or ``None`` if exhausted."""

        if after.tzinfo is None:
            raise ScheduleComputeError("Reference time must be timezone-aware")
        return self.trigger.get_next_fire_time(None, after + _PAST_REFERENCE)


__all__ = ["RecurrenceSchedule", "ScheduleComputeError"]
