"""Per-feed entry selection.

Given everything a feed offered in this run, pick at most one entry:

* entries published at or after the run cutoff are ignored, as are entries
  already delivered;
* a feed that has never been processed starts from its newest entry rather
  than replaying its history;
* otherwise the backlog is worked through oldest first;
* when the backlog is empty, feeds with ``random_fallback`` get a uniformly
  random older entry that has not been delivered yet.

The function never touches the state store; callers pass the relevant state
in, which keeps it deterministic for a seeded ``random.Random``.
"""

from __future__ import annotations

import random
from collections.abc import Collection, Iterable
from datetime import datetime

from saga.feeds.models import Candidate


def _ordered(candidates: Iterable[Candidate]) -> list[Candidate]:
    return sorted(candidates, key=lambda candidate: (candidate.published, candidate.id))


def eligible_candidates(
    candidates: Iterable[Candidate],
    *,
    cutoff: datetime,
    processed_ids: Collection[str],
) -> list[Candidate]:
    """Entries published before ``cutoff`` that have not been delivered yet."""

    return [
        candidate
        for candidate in candidates
        if candidate.published < cutoff and candidate.id not in processed_ids
    ]


def select_entry(
    candidates: Iterable[Candidate],
    *,
    cutoff: datetime,
    processed_ids: Collection[str],
    last_processed: datetime | None,
    random_fallback: bool,
    rng: random.Random,
) -> Candidate | None:
    """Return the entry to deliver for one feed, or ``None`` when nothing qualifies."""

    eligible = _ordered(
        eligible_candidates(candidates, cutoff=cutoff, processed_ids=processed_ids)
    )
    if not eligible:
        return None

    if last_processed is None:
        newest = eligible[-1].published
        # Ties on the newest timestamp resolve to the smallest id.
        return next(candidate for candidate in eligible if candidate.published == newest)

    fresh = [candidate for candidate in eligible if candidate.published > last_processed]
    if fresh:
        return fresh[0]

    if random_fallback:
        return rng.choice(eligible)

    return None


__all__ = ["eligible_candidates", "select_entry"]
