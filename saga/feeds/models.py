"""Data models describing fetched feed entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Candidate:
    """A single feed entry that may be picked for the next digest."""

    id: str
    feed_title: str
    title: str
    published: datetime
    authors: tuple[str, ...] = field(default_factory=tuple)
    body: str = ""


__all__ = ["Candidate"]
