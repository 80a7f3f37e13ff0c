"""Core asset discovery and resolution for Bookassets."""

from bookassets.errors import (
    AssetError,
    AssetOutsideSourceError,
    CacheWriteError,
    FetchError,
    LocalResolutionError,
    NotAFileError,
    SourceTreeError,
)
from .links import LocalLink, RemoteLink, classify, resolve_local
from .registry import Asset, find
from .scanner import extract_image_links

__all__ = [
    "Asset",
    "AssetError",
    "AssetOutsideSourceError",
    "CacheWriteError",
    "FetchError",
    "LocalLink",
    "LocalResolutionError",
    "NotAFileError",
    "RemoteLink",
    "SourceTreeError",
    "classify",
    "extract_image_links",
    "find",
    "resolve_local",
]
