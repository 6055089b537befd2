"""HTTP client that downloads feeds and turns their entries into candidates."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Protocol

import feedparser
import requests
from bs4 import BeautifulSoup
from loguru import logger

from saga.feeds.models import Candidate

UNKNOWN_FEED_TITLE = "Unknown Feed"
UNKNOWN_ENTRY_TITLE = "Unknown Title"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_STRIPPED_TAGS = ("script", "style", "iframe", "form", "object", "embed", "noscript")


class FetchError(RuntimeError):
    """Raised when a feed cannot be downloaded or parsed."""


class FeedFetcher(Protocol):
    def fetch(self, address: str) -> list[Candidate]:
        """Return the entries currently offered by the feed at ``address``."""


def clean_html(fragment: str) -> str:
    """Drop active content from an HTML fragment and re-serialise it."""

    if not fragment.strip():
        return ""
    soup = BeautifulSoup(fragment, "html.parser")
    for tag in soup(_STRIPPED_TAGS):
        tag.decompose()
    return str(soup).strip()


class FeedClient:
    """Fetch RSS/Atom feeds over HTTP and parse them with feedparser."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        user_agent: str = "Saga/0.1",
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def fetch(self, address: str) -> list[Candidate]:
        logger.info("Fetching feed {}", address)
        payload = self._download(address)
        try:
            candidates = self.parse(payload, address=address)
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(f"Failed to read entries from feed {address}: {exc}") from exc
        logger.info("Feed {} offered {} entries", address, len(candidates))
        return candidates

    def parse(self, payload: bytes, *, address: str = "<memory>") -> list[Candidate]:
        """Parse a raw feed document into candidates, preserving feed order."""

        parsed = feedparser.parse(payload)
        if parsed.bozo and not parsed.entries:
            raise FetchError(f"Failed to parse feed {address}: {parsed.get('bozo_exception')}")

        feed_title = (parsed.feed.get("title") or "").strip() or UNKNOWN_FEED_TITLE
        candidates: list[Candidate] = []
        for entry in parsed.entries:
            candidate = self._entry_to_candidate(entry, feed_title)
            if candidate is None:
                logger.warning("Skipping entry without id or link in feed {}", address)
                continue
            candidates.append(candidate)
        return candidates

    def _download(self, address: str) -> bytes:
        """GET the feed, retrying transient failures."""
        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.get(address, timeout=self.timeout)
                response.raise_for_status()
                return response.content
            except requests.RequestException as exc:
                last_error = exc
                logger.warning(
                    "Request for {} failed (attempt {}/{}): {}",
                    address,
                    attempt,
                    self.max_retries,
                    exc,
                )
                if attempt < self.max_retries:
                    time.sleep(self.retry_delay)
        raise FetchError(f"Failed to download feed {address}: {last_error}") from last_error

    def _entry_to_candidate(self, entry: Any, feed_title: str) -> Candidate | None:
        entry_id = (entry.get("id") or entry.get("link") or "").strip()
        if not entry_id:
            return None

        title = (entry.get("title") or "").strip() or UNKNOWN_ENTRY_TITLE
        authors = tuple(
            name
            for name in ((author.get("name") or "").strip() for author in entry.get("authors", []))
            if name
        )
        if not authors and entry.get("author"):
            authors = (entry["author"].strip(),)

        return Candidate(
            id=entry_id,
            feed_title=feed_title,
            title=title,
            authors=authors,
            published=self._entry_published(entry),
            body=clean_html(self._entry_body(entry)),
        )

    @staticmethod
    def _entry_published(entry: Any) -> datetime:
        # feedparser normalises *_parsed fields to UTC struct_time values.
        for key in ("published_parsed", "updated_parsed"):
            value = entry.get(key)
            if not value:
                continue
            try:
                return datetime(*value[:6], tzinfo=timezone.utc)
            except (ValueError, OverflowError):
                # Offsets can push a parsed date outside datetime's year range.
                logger.warning("Ignoring out-of-range {} in entry {}", key, entry.get("id") or entry.get("link"))
        return _EPOCH

    @staticmethod
    def _entry_body(entry: Any) -> str:
        for content in entry.get("content", []):
            value = content.get("value")
            if value:
                return value
        return entry.get("summary") or ""


__all__ = ["FeedClient", "FeedFetcher", "FetchError", "clean_html"]
