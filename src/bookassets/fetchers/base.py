"""Base definitions for remote asset fetchers."""

from __future__ import annotations

from typing import BinaryIO, Protocol

from bookassets.core.links import RemoteLink


class Fetcher(Protocol):
    """Interface for transports that materialize a remote link."""

    def fetch(self, link: RemoteLink, sink: BinaryIO) -> int:
        """Write the resource body into ``sink`` and return the number of bytes written."""
