"""Fetcher for `file://` URLs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO
from urllib.request import url2pathname

from bookassets.errors import FetchError
from bookassets.core.links import RemoteLink

_COPY_CHUNK = 64 * 1024


def path_from_file_url(link: RemoteLink) -> Path:
    """Return the local filesystem path a `file://` URL points at."""

    netloc = link.parts.netloc
    if netloc and netloc.lower() != "localhost":
        raise FetchError(f"Unsupported host {netloc!r} in file URL {link.url}", url=link.url)
    return Path(url2pathname(link.parts.path))


@dataclass(slots=True)
class FileFetcher:
    """Copy the bytes of a local file referenced by a `file://` URL."""

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def fetch(self, link: RemoteLink, sink: BinaryIO) -> int:
        source = path_from_file_url(link)
        try:
            handle = source.open("rb")
        except OSError as exc:
            raise FetchError(f"Unable to read {source} for {link.url}: {exc}", url=link.url) from exc

        with handle:
            self.logger.debug("Copying %s", source)
            written = 0
            while True:
                try:
                    chunk = handle.read(_COPY_CHUNK)
                except OSError as exc:
                    raise FetchError(f"Unable to read {source} for {link.url}: {exc}", url=link.url) from exc
                if not chunk:
                    return written
                sink.write(chunk)
                written += len(chunk)
