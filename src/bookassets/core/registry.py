"""Asset registry: resolves every image referenced by a book into an asset record."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path, PurePath

from bookassets.book import BookItem, chapters
from bookassets.core.links import LocalLink, RemoteLink, classify, ensure_file, resolve_local
from bookassets.core.scanner import extract_image_links
from bookassets.errors import AssetOutsideSourceError, SourceTreeError
from bookassets.fetchers.base import Fetcher
from bookassets.fetchers.cache import fetch_or_get_cached

logger = logging.getLogger(__name__)

CACHE_SUBDIR = "cache"
DEFAULT_MIMETYPE = "application/octet-stream"

# Types missing from some platform mime databases.
_EXTRA_TYPES: dict[str, str] = {
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".ico": "image/vnd.microsoft.icon",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}


def guess_mimetype(path: PurePath) -> str:
    """Guess a media type from the file's extension."""

    guessed, _ = mimetypes.guess_type(path.name, strict=False)
    if guessed:
        return guessed
    return _EXTRA_TYPES.get(path.suffix.lower(), DEFAULT_MIMETYPE)


@dataclass(frozen=True, slots=True)
class Asset:
    """A resolved media file referenced by a chapter."""

    location_on_disk: Path
    filename: Path
    mimetype: str

    @classmethod
    def new(cls, filename: PurePath, location_on_disk: Path) -> Asset:
        ensure_file(location_on_disk)
        return cls(
            location_on_disk=location_on_disk,
            filename=Path(filename),
            mimetype=guess_mimetype(location_on_disk),
        )


def find(
    root: Path,
    src_subdir: str | PurePath,
    items: Iterable[BookItem],
    destination_dir: Path,
    *,
    fetchers: Mapping[str, Fetcher] | None = None,
) -> list[Asset]:
    """Resolve every image referenced by the chapters in ``items``.

    Items that are not chapters (separators, part titles) are skipped. Remote images are
    cached under ``destination_dir / "cache"``. The first failure aborts the whole pass.
    """

    candidate = Path(root) / src_subdir
    try:
        src_dir = candidate.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise SourceTreeError(
            f"Unable to canonicalize the src directory {candidate}", path=candidate
        ) from exc
    if not src_dir.is_dir():
        raise SourceTreeError(f"The src directory {src_dir} is not a directory", path=src_dir)

    destination_dir = Path(destination_dir)
    cache_dir = destination_dir / CACHE_SUBDIR

    assets: list[Asset] = []
    for chapter in chapters(items):
        logger.debug("Searching %s for links and assets", chapter)
        parent_dir = (src_dir / chapter.path).parent
        for resolved in _resolve_links(chapter.content, parent_dir, cache_dir, fetchers):
            filename = _logical_filename(resolved, src_dir, cache_dir)
            assets.append(Asset.new(filename, resolved))

    logger.debug("Found %s asset(s) under %s", len(assets), src_dir)
    return assets


def _resolve_links(
    content: str,
    parent_dir: Path,
    cache_dir: Path,
    fetchers: Mapping[str, Fetcher] | None,
) -> list[Path]:
    resolved: list[Path] = []
    for raw_link in extract_image_links(content):
        link = classify(raw_link)
        if isinstance(link, RemoteLink):
            path = fetch_or_get_cached(link, cache_dir, fetchers=fetchers)
        elif isinstance(link, LocalLink):
            path = ensure_file(resolve_local(link.raw, parent_dir))
        else:  # pragma: no cover - exhaustive
            raise TypeError(f"Unexpected link type {type(link).__name__}")
        resolved.append(path)
    return resolved


def _logical_filename(resolved: Path, src_dir: Path, cache_dir: Path) -> PurePath:
    if resolved.is_relative_to(src_dir):
        return resolved.relative_to(src_dir)

    try:
        canonical_cache = cache_dir.resolve(strict=True)
    except OSError:
        canonical_cache = None
    if canonical_cache is not None and resolved.is_relative_to(canonical_cache):
        return PurePath(CACHE_SUBDIR) / resolved.relative_to(canonical_cache)

    raise AssetOutsideSourceError(
        f"Asset {resolved} is outside the src directory {src_dir}", path=resolved
    )
