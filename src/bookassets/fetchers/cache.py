"""Content-addressed on-disk cache for remote assets.

A remote URL maps to ``<cache_dir>/<sha256 hex of the URL><.ext>``, where ``.ext`` is the
extension of the URL's last path segment (nothing when the segment has none). The key
scheme is fixed so that cache files stay valid across runs and releases; presence of the
file at that path is the whole cache protocol. Files are written to a temporary sibling
and moved into place only after the body was fully written.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from hashlib import sha256
from pathlib import Path, PurePosixPath

from bookassets.errors import CacheWriteError, FetchError
from bookassets.core.links import RemoteLink, classify, ensure_file
from bookassets.fetchers.base import Fetcher
from bookassets.fetchers.http import HttpFetcher
from bookassets.fetchers.local import FileFetcher

logger = logging.getLogger(__name__)

CACHE_KEY_SCHEME = "sha256-hex"
CACHE_KEY_VERSION = 1
_TEMP_SUFFIX = ".part"


def default_fetchers(http: HttpFetcher | None = None) -> dict[str, Fetcher]:
    """Return the scheme -> fetcher table used when callers do not supply one."""

    http_fetcher = http or HttpFetcher()
    return {"file": FileFetcher(), "http": http_fetcher, "https": http_fetcher}


def cache_key(url: str) -> str:
    """Return the cache key of ``url``: the lowercase SHA-256 hex digest of its UTF-8 bytes."""

    return sha256(url.encode("utf-8")).hexdigest()


def url_extension(link: RemoteLink) -> str:
    """Return the extension (with its dot) of the URL's last path segment, or ``""``."""

    segment = link.parts.path.rsplit("/", 1)[-1]
    if not segment:
        return ""
    return PurePosixPath(segment).suffix


def cache_path_for(url: RemoteLink | str, cache_dir: Path) -> Path:
    """Return where ``url`` is (or will be) cached inside ``cache_dir``."""

    link = _as_remote(url)
    return cache_dir / f"{cache_key(link.url)}{url_extension(link)}"


def fetch_or_get_cached(
    url: RemoteLink | str,
    cache_dir: Path,
    *,
    fetchers: Mapping[str, Fetcher] | None = None,
) -> Path:
    """Return the canonical cache path of ``url``, fetching it first on a cache miss."""

    link = _as_remote(url)
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CacheWriteError(
            f"Unable to create cache directory {cache_dir}: {exc}", path=cache_dir
        ) from exc

    destination = cache_path_for(link, cache_dir)
    if destination.exists():
        logger.debug("asset at %s already downloaded to '%s'", link.url, destination)
    else:
        fetcher = _select_fetcher(link, fetchers)
        logger.info("downloading %s to '%s'", link.url, destination)
        _write_atomically(fetcher, link, destination)

    try:
        canonical = destination.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise CacheWriteError(
            f"Unable to fetch the canonical path for {destination}", path=destination
        ) from exc
    return ensure_file(canonical)


def _as_remote(url: RemoteLink | str) -> RemoteLink:
    if isinstance(url, RemoteLink):
        return url
    link = classify(url)
    if not isinstance(link, RemoteLink):
        raise FetchError(f"Not an absolute URL: {url!r}", url=url)
    return link


def _select_fetcher(link: RemoteLink, fetchers: Mapping[str, Fetcher] | None) -> Fetcher:
    table = fetchers if fetchers is not None else default_fetchers()
    fetcher = table.get(link.scheme.lower())
    if fetcher is None:
        raise FetchError(f"Unsupported URL scheme '{link.scheme}' for {link.url}", url=link.url)
    return fetcher


def _write_atomically(fetcher: Fetcher, link: RemoteLink, destination: Path) -> None:
    try:
        handle = tempfile.NamedTemporaryFile(
            dir=destination.parent,
            prefix=f".{destination.name}.",
            suffix=_TEMP_SUFFIX,
            delete=False,
        )
    except OSError as exc:
        raise CacheWriteError(f"Unable to create {destination}: {exc}", path=destination) from exc

    temp_path = Path(handle.name)
    try:
        with handle:
            written = fetcher.fetch(link, handle)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, destination)
    except OSError as exc:
        _discard(temp_path)
        raise CacheWriteError(f"Unable to write {destination}: {exc}", path=destination) from exc
    except BaseException:
        _discard(temp_path)
        raise

    logger.debug("wrote %s bytes to '%s'", written, destination)


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:  # pragma: no cover - best effort cleanup
        logger.warning("Unable to remove partial cache file %s: %s", path, exc)
