"""SQLite-backed record of processed entries and per-feed progress."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable

from loguru import logger

_SCHEMA: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS feeds (
        address TEXT PRIMARY KEY,
        last_processed INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS processed_items (
        id TEXT PRIMARY KEY
    )
    """,
)

# Only advance a feed's progress; an older instant never overwrites a newer one.
_UPSERT_PROGRESS = """
    INSERT INTO feeds (address, last_processed) VALUES (?, ?)
    ON CONFLICT(address) DO UPDATE SET last_processed = excluded.last_processed
    WHERE excluded.last_processed >= feeds.last_processed
"""

# Stay well below SQLite's bound-parameter limit.
_BATCH_SIZE = 500

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLISECOND = timedelta(milliseconds=1)


class StoreError(RuntimeError):
    """Raised when the state database cannot be read or written."""


def to_epoch_millis(instant: datetime) -> int:
    if instant.tzinfo is None:
        raise ValueError("Timestamps must be timezone-aware")
    return (instant - _EPOCH) // _ONE_MILLISECOND


def from_epoch_millis(value: int) -> datetime:
    return _EPOCH + value * _ONE_MILLISECOND


class StateStore:
    """Persisted processed-id set and feed progress map.

    The store is used from a single thread; every public method either reads
    or performs one short transaction.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = path if str(path) == ":memory:" else Path(path)
        try:
            if isinstance(self.path, Path):
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.path))
            with self._conn:
                for statement in _SCHEMA:
                    self._conn.execute(statement)
        except (sqlite3.Error, OSError) as exc:
            raise StoreError(f"Cannot open state database at {self.path}: {exc}") from exc
        logger.info("Opened state database at {}", self.path)

    def __enter__(self) -> "StateStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def is_processed(self, item_id: str) -> bool:
        try:
            row = self._conn.execute(
                "SELECT 1 FROM processed_items WHERE id = ?", (item_id,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to look up item '{item_id}': {exc}") from exc
        return row is not None

    def processed_ids(self, item_ids: Iterable[str]) -> set[str]:
        """Return the subset of ``item_ids`` already marked as processed."""

        ids = list(dict.fromkeys(item_ids))
        found: set[str] = set()
        try:
            for start in range(0, len(ids), _BATCH_SIZE):
                chunk = ids[start : start + _BATCH_SIZE]
                placeholders = ", ".join("?" for _ in chunk)
                rows = self._conn.execute(
                    f"SELECT id FROM processed_items WHERE id IN ({placeholders})", chunk
                ).fetchall()
                found.update(row[0] for row in rows)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to look up processed items: {exc}") from exc
        return found

    def mark_processed(self, item_id: str) -> None:
        try:
            with self._conn:
                self._conn.execute(
                    "INSERT OR IGNORE INTO processed_items (id) VALUES (?)", (item_id,)
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to mark item '{item_id}' as processed: {exc}") from exc

    def last_processed(self, feed_address: str) -> datetime | None:
        try:
            row = self._conn.execute(
                "SELECT last_processed FROM feeds WHERE address = ?", (feed_address,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read progress for feed {feed_address}: {exc}") from exc
        if row is None:
            return None
        return from_epoch_millis(row[0])

    def set_last_processed(self, feed_address: str, instant: datetime) -> None:
        try:
            with self._conn:
                self._conn.execute(_UPSERT_PROGRESS, (feed_address, to_epoch_millis(instant)))
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to record progress for feed {feed_address}: {exc}") from exc

    def commit(self, feed_address: str, item_id: str, published: datetime) -> None:
        """Mark ``item_id`` processed and advance the feed in one transaction."""

        try:
            with self._conn:
                self._conn.execute(
                    "INSERT OR IGNORE INTO processed_items (id) VALUES (?)", (item_id,)
                )
                self._conn.execute(_UPSERT_PROGRESS, (feed_address, to_epoch_millis(published)))
        except sqlite3.Error as exc:
            raise StoreError(
                f"Failed to commit item '{item_id}' for feed {feed_address}: {exc}"
            ) from exc


__all__ = ["StateStore", "StoreError", "from_epoch_millis", "to_epoch_millis"]
