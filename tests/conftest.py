"""Shared fixtures: path setup, a controllable clock and entry factories."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Callable, Iterator

import pytest
from loguru import logger

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from saga.feeds.models import Candidate  # noqa: E402

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Clock whose sleeps advance time instantly."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if seconds > 0:
            self.current += timedelta(seconds=seconds)

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_candidate() -> Callable[..., Candidate]:
    """Build candidates whose ``published`` is ``BASE_TIME`` plus ``minutes``."""

    def _make(
        item_id: str,
        minutes: float = 0,
        *,
        feed_title: str = "Example Feed",
        title: str | None = None,
        authors: tuple[str, ...] = ("Ada Lovelace",),
        body: str = "<p>Hello</p>",
    ) -> Candidate:
        return Candidate(
            id=item_id,
            feed_title=feed_title,
            title=title or f"Entry {item_id}",
            authors=authors,
            published=BASE_TIME + timedelta(minutes=minutes),
            body=body,
        )

    return _make


@contextmanager
def _route_logger_to_stderr(level: str = "INFO") -> Iterator[None]:
    handler_id = logger.add(sys.stderr, level=level)
    try:
        yield
    finally:
        logger.remove(handler_id)


@pytest.fixture()
def loguru_stderr() -> Iterator[None]:
    """Temporarily route Loguru output to stderr for ``capsys`` assertions."""

    with _route_logger_to_stderr():
        yield
