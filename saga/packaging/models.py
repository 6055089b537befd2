"""Packaged digest artifacts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

EPUB_MEDIA_TYPE = "application/epub+zip"


@dataclass(frozen=True)
class Artifact:
    """A binary document ready to be handed to a deliverer."""

    filename: str
    content: bytes
    media_type: str = EPUB_MEDIA_TYPE
    entry_count: int = 0

    @property
    def size(self) -> int:
        return len(self.content)

    def write_to(self, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        destination = directory / self.filename
        destination.write_bytes(self.content)
        return destination


__all__ = ["Artifact", "EPUB_MEDIA_TYPE"]
