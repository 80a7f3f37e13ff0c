"""Markdown image link extraction."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from markdown_it import MarkdownIt
from markdown_it.token import Token


def _build_parser() -> MarkdownIt:
    md = MarkdownIt("commonmark")
    # Keep destinations verbatim: no percent-encoding and no scheme blocklist (file:, data:).
    md.normalizeLink = lambda url: url
    md.validateLink = lambda url: True
    return md


_PARSER = _build_parser()


def _walk(tokens: Iterable[Token]) -> Iterator[Token]:
    for token in tokens:
        yield token
        if token.children:
            yield from _walk(token.children)


def extract_image_links(text: str) -> list[str]:
    """Return the destination of every image in ``text``, in document order.

    Inline (``![alt](dest)``) and reference-style (``![alt][id]``) images produce the same
    token, so both are reported without special handling. Duplicates are kept and plain
    hyperlinks are ignored.
    """

    links: list[str] = []
    for token in _walk(_PARSER.parse(text)):
        if token.type == "image":
            src = token.attrGet("src")
            if src is not None:
                links.append(str(src))
    return links
