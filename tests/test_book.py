"""Tests for loading book items from a source tree."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import pytest

from bookassets.book import Chapter, PartTitle, Separator, chapters, load_book
from bookassets.errors import SourceTreeError

SUMMARY = """\
# Summary

[Introduction](intro.md)

- [Chapter 1](chapter_1.md)
    - [Nested](nested/page.md)
- [Draft]()

---

# Part Two

- [Chapter 2](chapter_2.md#section)
"""


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_load_book_from_summary(tmp_path):
    src = tmp_path / "src"
    _write(src / "SUMMARY.md", SUMMARY)
    _write(src / "intro.md", "intro")
    _write(src / "chapter_1.md", "![a](a.png)")
    _write(src / "nested" / "page.md", "nested")
    _write(src / "chapter_2.md", "two")

    items = load_book(src)

    assert items == [
        Chapter(name="Introduction", path=PurePosixPath("intro.md"), content="intro"),
        Chapter(name="Chapter 1", path=PurePosixPath("chapter_1.md"), content="![a](a.png)"),
        Chapter(name="Nested", path=PurePosixPath("nested/page.md"), content="nested"),
        Separator(),
        PartTitle("Part Two"),
        Chapter(name="Chapter 2", path=PurePosixPath("chapter_2.md"), content="two"),
    ]
    assert [chapter.name for chapter in chapters(items)] == [
        "Introduction",
        "Chapter 1",
        "Nested",
        "Chapter 2",
    ]


def test_load_book_without_summary_discovers_markdown(tmp_path):
    src = tmp_path / "src"
    _write(src / "b.md", "b")
    _write(src / "a.md", "a")
    _write(src / "sub" / "c.md", "c")
    _write(src / "notes.txt", "ignored")

    items = load_book(src)

    assert [item.path for item in items] == [
        PurePosixPath("a.md"),
        PurePosixPath("b.md"),
        PurePosixPath("sub/c.md"),
    ]


def test_missing_chapter_file(tmp_path):
    src = tmp_path / "src"
    _write(src / "SUMMARY.md", "- [Gone](gone.md)\n")
    with pytest.raises(SourceTreeError) as excinfo:
        load_book(src)
    assert excinfo.value.path == src / "gone.md"


def test_missing_source_directory(tmp_path):
    with pytest.raises(SourceTreeError):
        load_book(tmp_path / "nope")


@pytest.mark.parametrize(
    "entry,name,target",
    [
        ("- [Intro](intro(1).md)", "Intro", "intro(1).md"),
        ("- [Mine](<my chapter.md>)", "Mine", "my chapter.md"),
        ("* [`Star`](star.md)", "Star", "star.md"),
    ],
)
def test_summary_link_targets_follow_commonmark(tmp_path, entry, name, target):
    src = tmp_path / "src"
    _write(src / "SUMMARY.md", f"# Summary\n\n{entry}\n")
    _write(src / target, "body")

    items = load_book(src)

    assert items == [Chapter(name=name, path=PurePosixPath(target), content="body")]


def test_links_in_part_headings_are_not_chapters(tmp_path):
    src = tmp_path / "src"
    _write(src / "SUMMARY.md", "- [One](one.md)\n\n# [Part](part.md)\n")
    _write(src / "one.md", "one")

    items = load_book(src)

    assert items == [
        Chapter(name="One", path=PurePosixPath("one.md"), content="one"),
        PartTitle("[Part](part.md)"),
    ]


def test_chapter_with_invalid_utf8(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "bad.md").write_bytes(b"\xff\xfe![x](a.png)")

    with pytest.raises(SourceTreeError) as excinfo:
        load_book(src)
    assert excinfo.value.path == src / "bad.md"
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)
