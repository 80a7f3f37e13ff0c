"""Shared fixtures for Bookassets tests."""

from __future__ import annotations

from pathlib import Path

import pytest

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 50
SVG_BYTES = b'<svg xmlns="http://www.w3.org/2000/svg" width="1" height="1"/>'


@pytest.fixture
def book_root(tmp_path: Path) -> Path:
    """A book root whose `src/` holds the images used by the chapter fixtures."""

    root = tmp_path / "book"
    src = root / "src"
    src.mkdir(parents=True)
    (src / "rust-logo.png").write_bytes(PNG_BYTES)
    (src / "reddit.svg").write_bytes(SVG_BYTES)
    return root


@pytest.fixture
def src_dir(book_root: Path) -> Path:
    return (book_root / "src").resolve()
