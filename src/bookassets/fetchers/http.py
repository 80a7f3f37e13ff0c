"""HTTP fetcher for remote asset downloads."""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, Optional

import httpx

from bookassets.errors import FetchError
from bookassets.core.links import RemoteLink

DEFAULT_CHUNK_SIZE = 65536


@dataclass(slots=True)
class HttpFetcher:
    """Fetcher for remote assets via synchronous HTTP streaming."""

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    timeout: Optional[float] = None
    follow_redirects: bool = True
    user_agent: Optional[str] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    client: Optional[httpx.Client] = None

    def fetch(self, link: RemoteLink, sink: BinaryIO) -> int:
        """Stream the response body for ``link`` into ``sink``."""

        headers = {"User-Agent": self.user_agent} if self.user_agent else None
        try:
            with self._client() as client:
                with client.stream("GET", link.url, headers=headers) as response:
                    if not response.is_success:
                        raise FetchError(
                            f"HTTP {response.status_code} for {link.url}", url=link.url
                        )

                    total_bytes = 0
                    for chunk in response.iter_bytes(chunk_size=self.chunk_size):
                        sink.write(chunk)
                        total_bytes += len(chunk)

                    expected = response.headers.get("content-length")
                    if (
                        expected is not None
                        and expected.isdigit()
                        and "content-encoding" not in response.headers
                        and int(expected) != total_bytes
                    ):
                        raise FetchError(
                            f"Incomplete body for {link.url}: got {total_bytes} of {expected} bytes",
                            url=link.url,
                        )

                    self.logger.debug(
                        "Fetched %s status=%s bytes=%s", link.url, response.status_code, total_bytes
                    )
                    return total_bytes
        except httpx.TimeoutException as exc:
            raise FetchError(f"Timeout fetching {link.url}: {exc}", url=link.url) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"HTTP error for {link.url}: {exc}", url=link.url) from exc

    def _client(self) -> contextlib.AbstractContextManager[httpx.Client]:
        if self.client is not None:
            return contextlib.nullcontext(self.client)
        options: Dict[str, Any] = {"follow_redirects": self.follow_redirects}
        if self.timeout is not None:
            options["timeout"] = self.timeout
        return httpx.Client(**options)

    @classmethod
    def from_options(
        cls, logger: logging.Logger, *, options: Optional[Dict[str, Any]] = None
    ) -> "HttpFetcher":
        """Create an HttpFetcher from option dict."""
        opts = options or {}
        timeout = opts.get("timeout")
        return cls(
            logger=logger,
            timeout=float(timeout) if timeout is not None else None,
            follow_redirects=bool(opts.get("follow_redirects", True)),
            user_agent=opts.get("user_agent"),
            chunk_size=int(opts.get("chunk_size", DEFAULT_CHUNK_SIZE)),
        )
