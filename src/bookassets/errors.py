"""Errors raised while resolving book assets."""

from __future__ import annotations

from pathlib import Path


class AssetError(Exception):
    """Base class for every asset resolution failure."""


class SourceTreeError(AssetError):
    """Raised when the book source directory cannot be canonicalized."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


class LocalResolutionError(AssetError):
    """Raised when a local link does not resolve to an existing path."""

    def __init__(self, message: str, *, link: str, path: Path) -> None:
        super().__init__(message)
        self.link = link
        self.path = path


class NotAFileError(AssetError):
    """Raised when a resolved asset exists but is not a regular file."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


class FetchError(AssetError):
    """Raised when copying or downloading a remote asset fails."""

    def __init__(self, message: str, *, url: str) -> None:
        super().__init__(message)
        self.url = url


class CacheWriteError(AssetError):
    """Raised when the cache directory or a cache file cannot be written."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


class AssetOutsideSourceError(AssetError):
    """Raised when a local asset canonicalizes outside the source directory."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path
