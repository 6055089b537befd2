"""EPUB packaging of a run's selected entries."""

from __future__ import annotations

import io
from datetime import datetime
from typing import Protocol, Sequence
from uuid import uuid4

from ebooklib import epub
from loguru import logger

from saga.feeds.models import Candidate
from saga.packaging.models import EPUB_MEDIA_TYPE, Artifact
from saga.packaging.renderer import ChapterRenderer

BOOK_AUTHOR = "Saga"
FILENAME_PREFIX = "saga_output"


class PackagingError(RuntimeError):
    """Raised when the digest document cannot be produced."""


class Packager(Protocol):
    def package(self, candidates: Sequence[Candidate], created_at: datetime) -> Artifact:
        """Bundle ``candidates`` into a single artifact."""


def artifact_filename(created_at: datetime) -> str:
    return f"{FILENAME_PREFIX}_{created_at.strftime('%Y%m%d_%H%M%S')}.epub"


class EpubPackager:
    """Build an EPUB 3 book with one chapter per entry and an inline table of contents."""

    def __init__(self, *, language: str = "en", renderer: ChapterRenderer | None = None) -> None:
        self.language = language
        self.renderer = renderer or ChapterRenderer()

    def package(self, candidates: Sequence[Candidate], created_at: datetime) -> Artifact:
        if not candidates:
            raise PackagingError("Cannot package an empty selection")

        title = f"{BOOK_AUTHOR} - {created_at.strftime('%Y-%m-%d')}"
        try:
            content = self._build(candidates, title)
        except PackagingError:
            raise
        except Exception as exc:
            raise PackagingError(f"Failed to build EPUB '{title}': {exc}") from exc

        artifact = Artifact(
            filename=artifact_filename(created_at),
            content=content,
            media_type=EPUB_MEDIA_TYPE,
            entry_count=len(candidates),
        )
        logger.info(
            "Packaged {} entries into {} ({:.1f} KiB)",
            artifact.entry_count,
            artifact.filename,
            artifact.size / 1024,
        )
        return artifact

    def _build(self, candidates: Sequence[Candidate], title: str) -> bytes:
        book = epub.EpubBook()
        book.set_identifier(f"urn:uuid:{uuid4()}")
        book.set_title(title)
        book.set_language(self.language)
        book.add_author(BOOK_AUTHOR)

        chapters: list[epub.EpubHtml] = []
        for index, candidate in enumerate(candidates, start=1):
            chapter = epub.EpubHtml(
                title=candidate.title,
                file_name=f"chapter_{index}.xhtml",
                lang=self.language,
            )
            chapter.content = self.renderer.render(candidate)
            book.add_item(chapter)
            chapters.append(chapter)

        book.toc = chapters
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        book.spine = ["nav", *chapters]

        buffer = io.BytesIO()
        epub.write_epub(buffer, book, {})
        payload = buffer.getvalue()
        if not payload:
            raise PackagingError(f"EPUB writer produced no output for '{title}'")
        return payload


__all__ = ["EpubPackager", "Packager", "PackagingError", "artifact_filename"]
