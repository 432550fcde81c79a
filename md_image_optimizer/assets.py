"""Asset directory analysis and size-budget checks.

Read-only helpers: they walk the assets tree and report counts, sizes,
and files that exceed the configured limits.  Nothing here modifies
files; compression lives in :mod:`md_image_optimizer.compressor`.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from md_image_optimizer.models import format_size

_log = logging.getLogger("assets")

PNG_SUFFIXES = (".png",)
JPEG_SUFFIXES = (".jpg", ".jpeg")
RASTER_SUFFIXES = PNG_SUFFIXES + JPEG_SUFFIXES + (".gif",)
"""Raster formats counted towards size budgets."""

_TYPE_BY_SUFFIX = {
    ".png": "png",
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".gif": "gif",
    ".svg": "svg",
    ".webp": "webp",
}
"""Report category for each recognized image suffix."""

LARGE_FILE_THRESHOLD = 200 * 1024
"""Raster files above this size are flagged as "large" in reports."""

MAX_FILE_SIZE = 500_000
"""Default per-image size budget (bytes)."""

MAX_TOTAL_SIZE = 50_000_000
"""Default budget for the whole assets directory (bytes)."""

DEFAULT_TOP_N = 10


def find_images(
    root: Path,
    suffixes: tuple[str, ...],
    min_size: int = 0,
) -> list[Path]:
    """Return files under *root* with one of *suffixes*, sorted.

    Suffix matching is case-insensitive.  Files of *min_size* bytes or
    fewer are skipped when *min_size* is positive.
    """
    if not root.is_dir():
        return []
    wanted = tuple(s.lower() for s in suffixes)
    found = []
    for p in root.rglob("*"):
        if not p.is_file() or p.suffix.lower() not in wanted:
            continue
        if min_size > 0 and p.stat().st_size <= min_size:
            continue
        found.append(p)
    return sorted(found)


def _directory_size(root: Path) -> int:
    return sum(p.stat().st_size for p in root.rglob("*") if p.is_file())


# ---------------------------------------------------------------------------
# Analysis report
# ---------------------------------------------------------------------------


@dataclass
class AssetReport:
    """Summary of an assets directory."""

    root: Path
    counts: Counter[str] = field(default_factory=Counter)
    """Number of files per image type (``png``, ``jpeg``, ``gif``, ...)."""
    total_size: int = 0
    """Size of every file under :attr:`root`, images or not."""
    largest: list[tuple[Path, int]] = field(default_factory=list)
    """Largest raster files, biggest first."""
    large_files: list[tuple[Path, int]] = field(default_factory=list)
    """Raster files above :data:`LARGE_FILE_THRESHOLD`."""

    def format(self) -> str:
        lines = [
            f"Asset Analysis Report: {self.root}",
            "File counts:",
        ]
        for kind in ("png", "jpeg", "gif", "svg", "webp"):
            lines.append(f"  {kind.upper():<5s} files: {self.counts.get(kind, 0)}")
        lines.append(f"  Total assets size: {format_size(self.total_size)}")
        if self.largest:
            lines.append(f"Top {len(self.largest)} largest files:")
            for path, size in self.largest:
                lines.append(f"  {format_size(size):>6s} - {path}")
        lines.append(
            f"Files > {format_size(LARGE_FILE_THRESHOLD)}: {len(self.large_files)}"
        )
        return "\n".join(lines)


def analyze_assets(root: Path, top_n: int = DEFAULT_TOP_N) -> AssetReport:
    """Count images by type and list the largest raster files under *root*."""
    report = AssetReport(root=root)
    if not root.is_dir():
        _log.warning("Assets directory %s not found", root)
        return report

    rasters: list[tuple[Path, int]] = []
    for p in root.rglob("*"):
        if not p.is_file():
            continue
        size = p.stat().st_size
        report.total_size += size
        suffix = p.suffix.lower()
        kind = _TYPE_BY_SUFFIX.get(suffix)
        if kind is None:
            continue
        report.counts[kind] += 1
        if suffix in RASTER_SUFFIXES:
            rasters.append((p, size))

    rasters.sort(key=lambda item: (-item[1], str(item[0])))
    report.largest = rasters[:top_n]
    report.large_files = [r for r in rasters if r[1] > LARGE_FILE_THRESHOLD]
    return report


# ---------------------------------------------------------------------------
# Size budget
# ---------------------------------------------------------------------------


@dataclass
class BudgetResult:
    """Outcome of :func:`check_size_budget`."""

    max_file_size: int
    max_total_size: int
    total_size: int = 0
    oversized: list[tuple[Path, int]] = field(default_factory=list)
    """Raster files larger than :attr:`max_file_size`."""

    @property
    def total_exceeded(self) -> bool:
        return self.total_size > self.max_total_size

    @property
    def violations(self) -> int:
        return len(self.oversized) + (1 if self.total_exceeded else 0)

    @property
    def ok(self) -> bool:
        return self.violations == 0

    def log_all(self) -> None:
        """Log each violation (errors) or a success line."""
        for path, size in self.oversized:
            _log.error(
                "  ✗ Size violation: %s (%s) exceeds %s limit",
                path, format_size(size), format_size(self.max_file_size),
            )
        if self.total_exceeded:
            _log.error(
                "  ✗ Total size violation: assets (%s) exceeds %s limit",
                format_size(self.total_size), format_size(self.max_total_size),
            )
        if self.ok:
            _log.info("  ✓ All files within size budgets")
        else:
            _log.error("Total violations: %d", self.violations)


def check_size_budget(
    root: Path,
    max_file_size: int = MAX_FILE_SIZE,
    max_total_size: int = MAX_TOTAL_SIZE,
) -> BudgetResult:
    """Check every raster image and the directory total against the budgets."""
    result = BudgetResult(max_file_size=max_file_size, max_total_size=max_total_size)
    if not root.is_dir():
        _log.warning("Assets directory %s not found", root)
        return result
    for p in find_images(root, RASTER_SUFFIXES):
        size = p.stat().st_size
        if size > max_file_size:
            result.oversized.append((p, size))
    result.total_size = _directory_size(root)
    return result
