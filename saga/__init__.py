"""Scheduled feed-to-ebook digests.

Each run picks at most one unseen entry per configured feed, packages the
selection into an EPUB and mails it to a reader.
"""

__all__: list[str] = []
