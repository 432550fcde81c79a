"""Configuration, result types, and summary formatting.

:class:`OptimizerOptions` holds the named switches recognized by the
rewrite engine.  The stats classes are plain result objects: each
processing call returns one, and callers fold them together with
:meth:`OptimizationStats.add` instead of mutating shared counters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class OptimizerOptions:
    """Switches for the markdown image optimizer.

    Every field defaults to enabled.
    """

    add_lazy_loading: bool = True
    """Add ``loading="lazy"`` to existing HTML ``<img>`` tags.

    Rewritten markdown asset images always carry it.
    """
    use_webp: bool = True
    """Wrap asset images in ``<picture>`` with a ``.webp`` ``<source>``.

    When disabled, asset images become a plain ``<img>`` tag.
    """
    add_dimensions: bool = True
    """Reserved.  No rewrite rule emits ``width``/``height`` yet because
    nothing supplies the real image dimensions."""
    optimize_alt_text: bool = True
    """Clean up alt text (drop "screenshot of" prefixes, extensions)."""
    backup_files: bool = True
    """Copy each file to the backup directory before rewriting it.

    Consumed by :class:`~md_image_optimizer.optimizer.MarkdownOptimizer`
    only; the rewrite engine ignores it.
    """


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class FileResult:
    """Outcome of processing a single markdown file."""

    path: Path
    status: str  # "optimized", "unchanged", "no-images", "failed"
    references: int = 0
    optimized: int = 0
    backup: Path | None = None
    error: str | None = None


@dataclass
class OptimizationStats:
    """Aggregate counters over a batch of markdown files."""

    files_processed: int = 0
    files_changed: int = 0
    files_failed: int = 0
    images_found: int = 0
    images_optimized: int = 0
    backups_created: int = 0
    failures: list[Path] = field(default_factory=list)

    def add(self, result: FileResult) -> None:
        """Fold one :class:`FileResult` into the totals."""
        if result.status == "failed":
            self.files_failed += 1
            self.failures.append(result.path)
            return
        if result.status == "no-images":
            return
        self.files_processed += 1
        self.images_found += result.references
        self.images_optimized += result.optimized
        if result.status == "optimized":
            self.files_changed += 1
        if result.backup is not None:
            self.backups_created += 1


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

_IEC_UNITS = ("K", "M", "G", "T", "P")


def format_size(num_bytes: int) -> str:
    """Format a byte count with IEC suffixes, like ``numfmt --to=iec``.

    Examples: ``"512"``, ``"1.5K"``, ``"20M"``.  Values below 10 in the
    chosen unit keep one decimal; larger values are rounded up to an
    integer.  Negative counts keep their sign.
    """
    if num_bytes < 0:
        return "-" + format_size(-num_bytes)
    if num_bytes < 1024:
        return str(num_bytes)
    value = float(num_bytes)
    unit = ""
    for unit in _IEC_UNITS:
        value /= 1024
        if value < 1024:
            break
    if value < 10:
        # numfmt rounds up ("from-zero") to one decimal.
        tenths = int(value * 10)
        if tenths < value * 10:
            tenths += 1
        if tenths < 100:
            return f"{tenths // 10}.{tenths % 10}{unit}"
        value = tenths / 10
    whole = int(value)
    if whole < value:
        whole += 1
    return f"{whole}{unit}"


def percent_saved(before: int, after: int) -> int:
    """Integer percentage saved (``0`` when *before* is zero)."""
    if before <= 0:
        return 0
    return (before - after) * 100 // before


def format_summary(stats: OptimizationStats) -> str:
    """Format the end-of-run summary for a markdown optimization batch."""
    lines = [
        "Optimization Summary:",
        "=" * 24,
        f"Files processed:  {stats.files_processed}",
        f"Files changed:    {stats.files_changed}",
        f"Images found:     {stats.images_found}",
        f"Images optimized: {stats.images_optimized}",
        f"Backups created:  {stats.backups_created}",
    ]
    if stats.files_failed:
        lines.append(f"Files failed:     {stats.files_failed}")
    return "\n".join(lines)
