"""Feed fetching and parsing."""

from saga.feeds.client import FeedClient, FeedFetcher, FetchError, clean_html
from saga.feeds.models import Candidate

__all__ = ["Candidate", "FeedClient", "FeedFetcher", "FetchError", "clean_html"]
