"""Rewrite rules for scanned image references.

Markdown references to local asset images are turned into a
``<picture>`` block with a WebP ``<source>`` and the original image as
fallback.  Existing ``<img>`` tags get ``loading="lazy"`` and a
responsive inline style when they lack them.  Everything else is
returned unchanged.

All functions here are pure and never raise: malformed input simply
comes back as-is.
"""

from __future__ import annotations

import logging
import re

from md_image_optimizer.models import OptimizerOptions
from md_image_optimizer.references import ImageReference, ReferenceKind, parse_attributes

_log = logging.getLogger("rewriter")

RESPONSIVE_STYLE = "max-width: 100%; height: auto;"
"""Inline style applied to rewritten images."""

LAZY_ATTR = 'loading="lazy"'
"""Loading-deferral attribute inserted into ``<img>`` tags."""

WEBP_MIME = "image/webp"

_ASSET_PREFIXES = ("./assets/", "../assets/", "assets/")
_ASSET_SEGMENT = "/assets/"

_RASTER_EXT_RE = re.compile(r"\.(png|jpg|jpeg)$", re.IGNORECASE)
"""Trailing raster extension replaced by ``.webp`` in sibling paths."""

_ALT_PREFIX_RE = re.compile(
    r"^(?:(?:a|an|the) (?:image|picture|photo|screenshot) (?:of|showing) (?:the )?"
    r"|(?:image|picture|photo|screenshot) (?:of|showing) )",
    re.IGNORECASE,
)
"""Redundant lead-in such as ``"Screenshot of "`` or ``"A photo showing the "``.

A ``the`` after the noun is only dropped in the article-led form.
"""

_ALT_EXT_RE = re.compile(r"\.(png|jpg|jpeg|gif)$", re.IGNORECASE)
"""File extension left in alt text (e.g. ``"diagram.PNG"``)."""

_OPEN_TAG_LEN = len("<img")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_asset_path(src: str) -> bool:
    """True if *src* points into a directory literally named ``assets``."""
    return src.startswith(_ASSET_PREFIXES) or _ASSET_SEGMENT in src


def webp_sibling(src: str) -> str:
    """Return *src* with a trailing ``.png``/``.jpg``/``.jpeg`` swapped for ``.webp``.

    Paths without one of those extensions are returned unchanged.
    """
    return _RASTER_EXT_RE.sub(".webp", src)


def optimize_alt_text(alt: str | None, options: OptimizerOptions | None = None) -> str | None:
    """Tidy up alt text for screen readers.

    Drops a redundant "screenshot of"-style lead-in and a trailing image
    file extension, trims whitespace, and capitalizes the first letter.
    Empty or ``None`` alt text, or a disabled ``optimize_alt_text``
    option, passes through unchanged.
    """
    options = options or OptimizerOptions()
    if not alt or not options.optimize_alt_text:
        return alt

    optimized = _ALT_PREFIX_RE.sub("", alt, count=1)
    optimized = _ALT_EXT_RE.sub("", optimized, count=1)
    optimized = optimized.strip()
    if optimized:
        optimized = optimized[0].upper() + optimized[1:]
    return optimized


# ---------------------------------------------------------------------------
# Rewrite rules
# ---------------------------------------------------------------------------


def rewrite_markdown_image(
    alt: str,
    src: str,
    options: OptimizerOptions | None = None,
) -> str:
    """Rewrite ``![alt](src)`` for an asset image; reproduce it otherwise.

    The original image stays as the ``<img>`` fallback and always carries
    ``loading="lazy"``; the ``add_lazy_loading`` option only governs
    existing HTML tags.  The WebP sibling is referenced without checking
    that it exists on disk.
    """
    options = options or OptimizerOptions()
    if not is_asset_path(src):
        return f"![{alt}]({src})"

    img_alt = optimize_alt_text(alt, options)
    img = f'<img src="{src}" alt="{img_alt}" {LAZY_ATTR} style="{RESPONSIVE_STYLE}">'

    if not options.use_webp:
        return img

    return (
        "<picture>\n"
        f'  <source srcset="{webp_sibling(src)}" type="{WEBP_MIME}">\n'
        f"  {img}\n"
        "</picture>"
    )


def rewrite_html_image(tag: str, options: OptimizerOptions | None = None) -> str:
    """Add lazy loading and a responsive style to an ``<img>`` tag.

    A tag that already has ``loading`` and either a ``srcset`` or a
    ``<picture>`` wrapper is considered optimized and returned unchanged.
    Otherwise each attribute is inserted right after the ``<img`` token
    when missing; existing attributes are kept verbatim.
    """
    options = options or OptimizerOptions()
    attrs = parse_attributes(tag)
    has_lazy = "loading" in attrs
    has_webp = "srcset" in attrs or "<picture>" in tag.lower()
    if has_lazy and has_webp:
        return tag

    if not has_lazy and options.add_lazy_loading:
        tag = f"{tag[:_OPEN_TAG_LEN]} {LAZY_ATTR}{tag[_OPEN_TAG_LEN:]}"

    if "style" not in attrs and "max-width" not in tag:
        tag = f'{tag[:_OPEN_TAG_LEN]} style="{RESPONSIVE_STYLE}"{tag[_OPEN_TAG_LEN:]}'

    return tag


def rewrite_reference(ref: ImageReference, options: OptimizerOptions | None = None) -> str:
    """Return the replacement text for *ref* (equal to ``ref.full_text`` if unchanged)."""
    if ref.kind is ReferenceKind.MARKDOWN:
        result = rewrite_markdown_image(ref.alt_text or "", ref.source_path, options)
    else:
        result = rewrite_html_image(ref.full_text, options)
    if result != ref.full_text:
        _log.debug("  rewrite %s @%d: %s", ref.kind.value, ref.offset, ref.source_path)
    return result
