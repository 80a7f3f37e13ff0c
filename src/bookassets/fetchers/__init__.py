"""Fetcher implementations and the remote asset cache."""

from .base import Fetcher
from .cache import cache_path_for, default_fetchers, fetch_or_get_cached
from .http import HttpFetcher
from .local import FileFetcher

__all__ = [
    "Fetcher",
    "FileFetcher",
    "HttpFetcher",
    "cache_path_for",
    "default_fetchers",
    "fetch_or_get_cached",
]
