"""Image reference scanning for markdown documents.

Finds every image reference in a document and records its exact span:

- **Markdown syntax** -- ``![alt](path)``.
- **HTML syntax** -- ``<img ... src="path" ...>`` (tag and attribute names
  matched case-insensitively, attributes in any order and quoting).

Scanning is a small hand-written state machine rather than a pair of
regular expressions: outside a reference the scanner looks for ``![`` or
``<img``; inside one it consumes characters until the construct closes
(or turns out not to be a reference).  This keeps behaviour deterministic
for escaped ``\\]`` inside alt text and for ``>`` inside quoted attribute
values.

The main entry point is :func:`scan_references`, which returns references
of both kinds in document order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

_log = logging.getLogger("references")


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class ReferenceKind(Enum):
    """Syntax used by an image reference."""

    MARKDOWN = "markdown"
    """``![alt](path)``."""

    HTML = "html"
    """``<img src="path">``."""


@dataclass(frozen=True)
class ImageReference:
    """One image occurrence found in a document."""

    kind: ReferenceKind
    full_text: str
    """Exact matched substring of the source document."""
    source_path: str
    """Image path or URL exactly as written (may be empty)."""
    offset: int
    """0-based offset of :attr:`full_text` within the document."""
    alt_text: str | None = None
    """Bracketed alt text (markdown syntax only, may be empty)."""

    @property
    def end(self) -> int:
        """Offset one past the last character of the reference."""
        return self.offset + len(self.full_text)


# ---------------------------------------------------------------------------
# Low-level matchers
# ---------------------------------------------------------------------------

_WHITESPACE = frozenset(" \t\r\n\f")

_NAME_STOP = _WHITESPACE | frozenset("=>/")
"""Characters that terminate an attribute name."""


def _find_alt_end(text: str, start: int) -> int:
    """Return the offset of the ``]`` closing alt text that begins at *start*.

    A backslash escapes the next character.  If the escaped scan runs
    into another ``![`` opener or off the end of *text*, the first
    literal ``]`` closes the alt text instead.  Returns -1 if there is
    none.
    """
    n = len(text)
    i = start
    while i < n:
        c = text[i]
        if c == "\\" and i + 1 < n:
            i += 2
            continue
        if c == "]":
            return i
        if c == "!" and text.startswith("![", i):
            break
        i += 1
    return text.find("]", start)


def _match_markdown(text: str, pos: int) -> ImageReference | None:
    """Try to read ``![alt](path)`` starting at *pos*.

    Alt text ends at the first ``]`` not preceded by a backslash (see
    :func:`_find_alt_end`); the path ends at the first ``)``.  Returns
    ``None`` if the construct does not close.
    """
    if not text.startswith("![", pos):
        return None

    n = len(text)
    alt_end = _find_alt_end(text, pos + 2)
    if alt_end == -1:
        return None
    if alt_end + 1 >= n or text[alt_end + 1] != "(":
        return None

    path_start = alt_end + 2
    path_end = text.find(")", path_start)
    if path_end == -1:
        return None

    return ImageReference(
        kind=ReferenceKind.MARKDOWN,
        full_text=text[pos:path_end + 1],
        source_path=text[path_start:path_end],
        offset=pos,
        alt_text=text[pos + 2:alt_end],
    )


def _parse_tag(text: str, pos: int) -> tuple[dict[str, str | None], int] | None:
    """Parse an ``<img`` tag starting at *pos*.

    Returns ``(attributes, end)`` where *attributes* maps lower-cased
    attribute names to their values (``None`` for valueless attributes,
    first occurrence wins) and *end* is the offset just past the closing
    ``>``.  Returns ``None`` when *pos* does not start an ``<img`` tag or
    the tag never closes.
    """
    if text[pos:pos + 4].lower() != "<img":
        return None
    n = len(text)
    i = pos + 4
    if i >= n or text[i] not in _WHITESPACE:
        return None

    attrs: dict[str, str | None] = {}
    while i < n:
        c = text[i]
        if c in _WHITESPACE or c == "/":
            i += 1
            continue
        if c == ">":
            return attrs, i + 1

        name_start = i
        while i < n and text[i] not in _NAME_STOP:
            i += 1
        name = text[name_start:i].lower()

        while i < n and text[i] in _WHITESPACE:
            i += 1
        if i >= n or text[i] != "=":
            attrs.setdefault(name, None)
            continue

        # Attribute value.
        i += 1
        while i < n and text[i] in _WHITESPACE:
            i += 1
        if i >= n:
            return None
        quote = text[i]
        if quote in "\"'":
            close = text.find(quote, i + 1)
            if close == -1:
                return None
            value = text[i + 1:close]
            i = close + 1
        else:
            value_start = i
            while i < n and text[i] not in _WHITESPACE and text[i] != ">":
                i += 1
            value = text[value_start:i]
        attrs.setdefault(name, value)

    return None


def _match_html(text: str, pos: int) -> ImageReference | None:
    """Try to read an ``<img>`` tag carrying a ``src`` attribute at *pos*."""
    parsed = _parse_tag(text, pos)
    if parsed is None:
        return None
    attrs, end = parsed
    src = attrs.get("src")
    if not src:
        return None
    return ImageReference(
        kind=ReferenceKind.HTML,
        full_text=text[pos:end],
        source_path=src,
        offset=pos,
    )


def parse_attributes(tag: str) -> dict[str, str | None]:
    """Return the attributes of an ``<img ...>`` tag string.

    Names are lower-cased.  Returns an empty dict if *tag* is not a
    well-formed ``<img`` tag.
    """
    parsed = _parse_tag(tag, 0)
    return parsed[0] if parsed is not None else {}


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


def _scan(text: str, kinds: frozenset[ReferenceKind]) -> list[ImageReference]:
    refs: list[ImageReference] = []
    want_md = ReferenceKind.MARKDOWN in kinds
    want_html = ReferenceKind.HTML in kinds
    n = len(text)
    i = 0
    while i < n:
        c = text[i]
        ref: ImageReference | None = None
        if c == "!" and want_md:
            ref = _match_markdown(text, i)
        elif c == "<" and want_html:
            ref = _match_html(text, i)
        if ref is None:
            i += 1
            continue
        refs.append(ref)
        i = ref.end
    return refs


def scan_markdown_references(text: str) -> list[ImageReference]:
    """Return all ``![alt](path)`` references, left to right."""
    return _scan(text, frozenset({ReferenceKind.MARKDOWN}))


def scan_html_references(text: str) -> list[ImageReference]:
    """Return all ``<img src=...>`` references, left to right."""
    return _scan(text, frozenset({ReferenceKind.HTML}))


def scan_references(text: str) -> list[ImageReference]:
    """Find every image reference in *text*, in document order.

    Both syntaxes are recognized in a single left-to-right pass, so the
    result is sorted by :attr:`ImageReference.offset` and references
    never overlap: once a reference is consumed, scanning resumes after
    its last character.
    """
    refs = _scan(text, frozenset(ReferenceKind))
    _log.debug(
        "Scanned %d reference(s) (%d markdown, %d html)",
        len(refs),
        sum(1 for r in refs if r.kind is ReferenceKind.MARKDOWN),
        sum(1 for r in refs if r.kind is ReferenceKind.HTML),
    )
    return refs
