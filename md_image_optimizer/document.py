"""Document-level rewriting: scan, rewrite, and splice back together.

:func:`optimize_document` is a pure function over one document's text.
Replacements are spliced in original-offset order with a running length
delta, so every byte outside a rewritten span is preserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from md_image_optimizer.models import OptimizerOptions
from md_image_optimizer.references import ImageReference, scan_references
from md_image_optimizer.rewriter import rewrite_reference

_log = logging.getLogger("document")


@dataclass(frozen=True)
class Rewrite:
    """Replacement text computed for one reference."""

    reference: ImageReference
    text: str

    @property
    def changed(self) -> bool:
        return self.text != self.reference.full_text


@dataclass(frozen=True)
class DocumentResult:
    """Rewritten document plus counts."""

    content: str
    optimized: int
    """Number of references whose replacement differs from the original."""
    references: int = 0
    """Number of references scanned."""

    @property
    def changed(self) -> bool:
        return self.optimized > 0


def apply_rewrites(text: str, rewrites: list[Rewrite]) -> DocumentResult:
    """Splice *rewrites* into *text* and count the changed ones.

    Rewrites are applied in ascending original offset regardless of the
    order given, tracking the cumulative length change of earlier
    splices.  Unchanged rewrites are skipped and not counted.
    """
    content = text
    delta = 0
    optimized = 0
    for rw in sorted(rewrites, key=lambda r: r.reference.offset):
        if not rw.changed:
            continue
        ref = rw.reference
        start = ref.offset + delta
        content = content[:start] + rw.text + content[start + len(ref.full_text):]
        delta += len(rw.text) - len(ref.full_text)
        optimized += 1
    return DocumentResult(content=content, optimized=optimized, references=len(rewrites))


def optimize_document(text: str, options: OptimizerOptions | None = None) -> DocumentResult:
    """Rewrite every image reference in *text*.

    Returns the new content and the number of references changed.  A
    document without image references comes back unchanged with a count
    of zero.
    """
    options = options or OptimizerOptions()
    refs = scan_references(text)
    rewrites = [Rewrite(ref, rewrite_reference(ref, options)) for ref in refs]
    result = apply_rewrites(text, rewrites)
    _log.debug(
        "Document: %d reference(s), %d optimized", result.references, result.optimized,
    )
    return result
