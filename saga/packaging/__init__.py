"""Digest packaging into EPUB documents."""

from saga.packaging.epub import EpubPackager, Packager, PackagingError, artifact_filename
from saga.packaging.models import EPUB_MEDIA_TYPE, Artifact
from saga.packaging.renderer import ChapterRenderer

__all__ = [
    "Artifact",
    "ChapterRenderer",
    "EPUB_MEDIA_TYPE",
    "EpubPackager",
    "Packager",
    "PackagingError",
    "artifact_filename",
]
