"""Classification of raw image links and resolution of local ones."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import SplitResult, urlsplit

from bookassets.errors import LocalResolutionError, NotAFileError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_AUTHORITY_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss"})


@dataclass(frozen=True, slots=True)
class RemoteLink:
    """A link that parsed as an absolute URL."""

    url: str
    parts: SplitResult

    @property
    def scheme(self) -> str:
        return self.parts.scheme


@dataclass(frozen=True, slots=True)
class LocalLink:
    """A link interpreted as a filesystem path relative to its chapter."""

    raw: str


ClassifiedLink = RemoteLink | LocalLink


def parse_absolute_url(raw_link: str) -> SplitResult | None:
    """Return the split URL when ``raw_link`` is an absolute URL, otherwise None."""

    candidate = raw_link.strip()
    if not _SCHEME_RE.match(candidate):
        return None
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if len(scheme) < 2:
        # Windows drive letters (`C:\images\x.png`) look like one-letter schemes.
        return None
    if scheme in _AUTHORITY_SCHEMES and not parts.netloc:
        return None
    return parts


def classify(raw_link: str) -> ClassifiedLink:
    """Classify a raw link as remote (absolute URL) or local (anything else)."""

    parts = parse_absolute_url(raw_link)
    if parts is None:
        return LocalLink(raw=raw_link)
    return RemoteLink(url=raw_link.strip(), parts=parts)


def resolve_local(raw_link: str, parent_dir: Path) -> Path:
    """Join ``raw_link`` onto ``parent_dir`` and canonicalize the result."""

    candidate = parent_dir / raw_link
    try:
        return candidate.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise LocalResolutionError(
            f"Unable to fetch the canonical path for {candidate}",
            link=raw_link,
            path=candidate,
        ) from exc


def ensure_file(path: Path) -> Path:
    """Return ``path`` unchanged when it names a regular file."""

    if not path.is_file():
        raise NotAFileError(f"Asset was not a file, {path}", path=path)
    return path
