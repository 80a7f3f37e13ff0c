"""Book items consumed by the asset registry, and a loader for a book's source tree."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from markdown_it import MarkdownIt
from markdown_it.token import Token

from bookassets.errors import SourceTreeError

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "SUMMARY.md"


@dataclass(frozen=True, slots=True)
class Chapter:
    """A markdown document of the book, addressed relative to the source directory."""

    name: str
    path: PurePosixPath
    content: str

    def __str__(self) -> str:
        return f"{self.name} ({self.path})"


@dataclass(frozen=True, slots=True)
class Separator:
    """A horizontal separator between groups of chapters."""


@dataclass(frozen=True, slots=True)
class PartTitle:
    """A heading that opens a new part of the book."""

    title: str


BookItem = Chapter | Separator | PartTitle


def chapters(items: Iterable[BookItem]) -> list[Chapter]:
    """Return the chapters of ``items`` in order, dropping structural items."""

    return [item for item in items if isinstance(item, Chapter)]


def load_book(src_dir: Path, summary: str = DEFAULT_SUMMARY) -> list[BookItem]:
    """Load the items of the book rooted at ``src_dir``.

    With a summary file, its links become chapters in order, ``---`` breaks become
    separators and top-level headings after the first entry become part titles; draft
    entries with an empty target are skipped. Without one, every markdown file under
    ``src_dir`` becomes a chapter, ordered by path.
    """

    if not src_dir.is_dir():
        raise SourceTreeError(f"Source directory {src_dir} does not exist", path=src_dir)

    summary_path = src_dir / summary
    if summary_path.is_file():
        return _load_from_summary(src_dir, summary_path)

    items: list[BookItem] = []
    for path in sorted(src_dir.rglob("*.md")):
        if path == summary_path or not path.is_file():
            continue
        relative = PurePosixPath(path.relative_to(src_dir).as_posix())
        items.append(_read_chapter(src_dir, relative.stem, relative))
    logger.debug("Discovered %s chapter(s) under %s", len(items), src_dir)
    return items


def _build_parser() -> MarkdownIt:
    md = MarkdownIt("commonmark")
    # Chapter paths are file names, not URLs: keep spaces and other characters as written.
    md.normalizeLink = lambda url: url
    return md


_PARSER = _build_parser()


def _load_from_summary(src_dir: Path, summary_path: Path) -> list[BookItem]:
    items: list[BookItem] = []
    heading: str | None = None
    for token in _PARSER.parse(_read_text(summary_path)):
        if token.type == "heading_open":
            heading = token.tag
        elif token.type == "heading_close":
            heading = None
        elif token.type == "hr":
            items.append(Separator())
        elif token.type == "inline" and heading is not None:
            # The book title heading comes before any entry and is not a part.
            if heading == "h1" and items:
                items.append(PartTitle(token.content.strip()))
        elif token.type == "inline":
            for name, target in _summary_links(token.children or []):
                target = target.split("#", 1)[0].strip()
                if not target:
                    logger.debug("Skipping draft chapter '%s'", name)
                    continue
                items.append(_read_chapter(src_dir, name, PurePosixPath(target)))
    logger.debug("Loaded %s item(s) from %s", len(items), summary_path)
    return items


def _summary_links(children: Sequence[Token]) -> Iterator[tuple[str, str]]:
    """Yield ``(title, target)`` for every link in an inline token's children."""

    target: str | None = None
    title: list[str] = []
    for child in children:
        if child.type == "link_open":
            target = str(child.attrGet("href") or "")
            title = []
        elif child.type == "link_close" and target is not None:
            yield "".join(title).strip(), target
            target = None
        elif target is not None and child.type in ("text", "code_inline"):
            title.append(child.content)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceTreeError(f"Unable to read {path}: {exc}", path=path) from exc


def _read_chapter(src_dir: Path, name: str, path: PurePosixPath) -> Chapter:
    return Chapter(name=name, path=path, content=_read_text(src_dir / path))
