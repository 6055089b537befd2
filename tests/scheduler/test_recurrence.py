from __future__ import annotations

from datetime import UTC, datetime

import pytest

from saga.scheduler import RecurrenceSchedule, ScheduleComputeError

from conftest import BASE_TIME


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("30 7 * * *", datetime(2025, 1, 2, 7, 30, tzinfo=UTC)),
        ("0 0 7 * * *", datetime(2025, 1, 2, 7, 0, tzinfo=UTC)),
        ("0 0 18 * * * 2025", datetime(2025, 1, 1, 18, 0, tzinfo=UTC)),
        ("0 9 * * mon", datetime(2025, 1, 6, 9, 0, tzinfo=UTC)),
    ],
)
def test_next_fire_time_for_supported_layouts(expression: str, expected: datetime) -> None:
    schedule = RecurrenceSchedule.parse(expression)

    assert schedule.next_fire_time(BASE_TIME) == expected


def test_question_mark_is_a_wildcard() -> None:
    schedule = RecurrenceSchedule.parse("0 0 12 ? * *")

    assert schedule.next_fire_time(BASE_TIME) == datetime(2025, 1, 2, 12, 0, tzinfo=UTC)


def test_next_fire_time_is_strictly_after_reference() -> None:
    schedule = RecurrenceSchedule.parse("0 * * * *")

    assert schedule.next_fire_time(BASE_TIME) == datetime(2025, 1, 1, 13, 0, tzinfo=UTC)
    just_before = BASE_TIME.replace(minute=59, second=59, microsecond=999_999)
    assert schedule.next_fire_time(just_before) == datetime(2025, 1, 1, 13, 0, tzinfo=UTC)


def test_timezone_is_applied() -> None:
    schedule = RecurrenceSchedule.parse("0 7 * * *", timezone="America/New_York")

    next_fire = schedule.next_fire_time(BASE_TIME)

    assert next_fire == datetime(2025, 1, 2, 12, 0, tzinfo=UTC)
    assert next_fire.utcoffset().total_seconds() == -5 * 3600


def test_exhausted_schedule_returns_none() -> None:
    schedule = RecurrenceSchedule.parse("0 0 0 1 1 * 2020")

    assert schedule.next_fire_time(BASE_TIME) is None


@pytest.mark.parametrize("expression", ["", "* * * *", "0 0 0 1 1 * 2020 extra", "99 * * * *", "0 0 25 * * *"])
def test_invalid_expressions_raise_value_error(expression: str) -> None:
    with pytest.raises(ValueError):
        RecurrenceSchedule.parse(expression)


def test_unknown_timezone_raises_value_error() -> None:
    with pytest.raises(ValueError, match="Unknown timezone"):
        RecurrenceSchedule.parse("0 7 * * *", timezone="Mars/Olympus_Mons")


def test_naive_reference_is_rejected() -> None:
    schedule = RecurrenceSchedule.parse("0 7 * * *")

    with pytest.raises(ScheduleComputeError):
        schedule.next_fire_time(datetime(2025, 1, 1, 12, 0))


@pytest.mark.parametrize("expression", ["0 0 7 * * 1", "0 7 * * 1-5", "0 7 * * */2"])
def test_numeric_day_of_week_is_rejected(expression: str) -> None:
    with pytest.raises(ValueError, match="numeric day of week"):
        RecurrenceSchedule.parse(expression)
