"""Tests for the content-addressed remote asset cache."""

from __future__ import annotations

import errno
import hashlib
import io
from pathlib import Path
from typing import BinaryIO

import pytest

from bookassets.errors import CacheWriteError, FetchError, NotAFileError
from bookassets.core.links import RemoteLink, classify
from bookassets.fetchers.cache import (
    CACHE_KEY_SCHEME,
    cache_key,
    cache_path_for,
    default_fetchers,
    fetch_or_get_cached,
    url_extension,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 50


class RecordingFetcher:
    """Fetcher double that writes a fixed payload and records every call."""

    def __init__(self, payload: bytes = PNG_BYTES) -> None:
        self.payload = payload
        self.calls: list[str] = []

    def fetch(self, link: RemoteLink, sink: BinaryIO) -> int:
        self.calls.append(link.url)
        sink.write(self.payload)
        return len(self.payload)


class FailingFetcher:
    def fetch(self, link: RemoteLink, sink: BinaryIO) -> int:
        sink.write(b"partial")
        raise FetchError(f"HTTP 503 for {link.url}", url=link.url)


def _remote(url: str) -> RemoteLink:
    link = classify(url)
    assert isinstance(link, RemoteLink)
    return link


def test_cache_key_is_sha256_hex_of_url():
    url = "https://example.com/images/logo.png"
    assert CACHE_KEY_SCHEME == "sha256-hex"
    assert cache_key(url) == hashlib.sha256(url.encode("utf-8")).hexdigest()


def test_cache_path_is_deterministic(tmp_path: Path):
    url = "https://example.com/images/logo.png"
    first = cache_path_for(url, tmp_path)
    second = cache_path_for(_remote(url), tmp_path)
    assert first == second
    assert first == tmp_path / f"{cache_key(url)}.png"


def test_distinct_urls_use_distinct_files(tmp_path: Path):
    assert cache_path_for("https://example.com/a.png", tmp_path) != cache_path_for(
        "https://example.com/a.png?v=2", tmp_path
    )


@pytest.mark.parametrize(
    "url,extension",
    [
        ("https://example.com/images/logo.png", ".png"),
        ("https://example.com/archive.tar.gz", ".gz"),
        ("https://example.com/a.gif?v=1#frag", ".gif"),
        ("https://example.com/download?id=3", ""),
        ("https://example.com/images/", ""),
        ("https://example.com", ""),
        ("https://example.com/.hidden", ""),
    ],
)
def test_url_extension(url, extension):
    assert url_extension(_remote(url)) == extension


def test_extensionless_url_gets_extensionless_file(tmp_path: Path):
    url = "https://example.com/avatar"
    fetcher = RecordingFetcher()
    path = fetch_or_get_cached(url, tmp_path / "cache", fetchers={"https": fetcher})
    assert path.name == cache_key(url)
    assert path.read_bytes() == PNG_BYTES


def test_fetches_at_most_once(tmp_path: Path):
    cache_dir = tmp_path / "dest" / "cache"
    fetcher = RecordingFetcher()
    url = "https://cdn.example.com/logo.png"

    first = fetch_or_get_cached(url, cache_dir, fetchers={"https": fetcher})
    second = fetch_or_get_cached(url, cache_dir, fetchers={"https": fetcher})

    assert fetcher.calls == [url]
    assert first == second
    assert first == cache_path_for(url, cache_dir).resolve()
    assert first.read_bytes() == PNG_BYTES


def test_existing_cache_file_survives_new_process(tmp_path: Path):
    url = "https://cdn.example.com/logo.png"
    destination = cache_path_for(url, tmp_path)
    destination.write_bytes(b"cached earlier")
    fetcher = RecordingFetcher()

    path = fetch_or_get_cached(url, tmp_path, fetchers={"https": fetcher})

    assert fetcher.calls == []
    assert path.read_bytes() == b"cached earlier"


def test_file_url_is_copied_into_cache(book_root, src_dir, tmp_path: Path):
    source = src_dir / "rust-logo.png"
    url = source.as_uri()
    cache_dir = tmp_path / "cache"

    path = fetch_or_get_cached(url, cache_dir)

    assert path == cache_path_for(url, cache_dir).resolve()
    assert path.exists()
    assert path.read_bytes() == source.read_bytes()
    assert path.suffix == ".png"


def test_failed_fetch_leaves_no_partial_file(tmp_path: Path):
    cache_dir = tmp_path / "cache"
    with pytest.raises(FetchError, match="HTTP 503"):
        fetch_or_get_cached(
            "https://example.com/x.png", cache_dir, fetchers={"https": FailingFetcher()}
        )
    assert list(cache_dir.iterdir()) == []


def test_missing_file_url_raises_fetch_error(tmp_path: Path):
    url = (tmp_path / "nope.png").as_uri()
    with pytest.raises(FetchError) as excinfo:
        fetch_or_get_cached(url, tmp_path / "cache")
    assert excinfo.value.url == url
    assert list((tmp_path / "cache").iterdir()) == []


class _UnreadableHandle(io.BytesIO):
    def read(self, size: int | None = -1) -> bytes:
        raise OSError(errno.EIO, "Input/output error")


def test_read_error_in_file_url_raises_fetch_error(tmp_path: Path, monkeypatch):
    source = tmp_path / "broken.png"
    source.write_bytes(PNG_BYTES)
    url = source.as_uri()
    original_open = Path.open

    def fake_open(self, *args, **kwargs):
        if self == source:
            return _UnreadableHandle()
        return original_open(self, *args, **kwargs)

    monkeypatch.setattr(Path, "open", fake_open)

    with pytest.raises(FetchError, match="Input/output error") as excinfo:
        fetch_or_get_cached(url, tmp_path / "cache")
    assert excinfo.value.url == url
    assert list((tmp_path / "cache").iterdir()) == []


def test_unsupported_scheme(tmp_path: Path):
    with pytest.raises(FetchError, match="Unsupported URL scheme"):
        fetch_or_get_cached("ftp://example.com/a.png", tmp_path, fetchers=default_fetchers())


def test_relative_link_is_not_a_url(tmp_path: Path):
    with pytest.raises(FetchError, match="Not an absolute URL"):
        fetch_or_get_cached("images/a.png", tmp_path)


def test_directory_at_cache_path_is_not_a_file(tmp_path: Path):
    url = "https://example.com/a.png"
    cache_path_for(url, tmp_path).mkdir()
    with pytest.raises(NotAFileError):
        fetch_or_get_cached(url, tmp_path, fetchers={"https": RecordingFetcher()})


def test_cache_dir_that_cannot_be_created(tmp_path: Path):
    blocker = tmp_path / "dest"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(CacheWriteError) as excinfo:
        fetch_or_get_cached(
            "https://example.com/a.png", blocker / "cache", fetchers={"https": RecordingFetcher()}
        )
    assert excinfo.value.path == blocker / "cache"
