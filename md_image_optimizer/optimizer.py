"""Markdown file optimizer.

Walks a documentation tree, backs up each markdown file that contains
images, rewrites its image references with
:func:`~md_image_optimizer.document.optimize_document`, and writes the
result back when anything changed.

Per-file I/O failures are logged and counted; they never stop the batch.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from md_image_optimizer.document import optimize_document
from md_image_optimizer.models import FileResult, OptimizationStats, OptimizerOptions

_log = logging.getLogger("optimizer")

DEFAULT_BACKUP_DIR = Path("markdown-backup")
"""Directory receiving ``<name>.<timestamp>.backup`` copies."""

DEFAULT_RECOMMENDATIONS_FILE = Path("performance-recommendations.md")

_MARKDOWN_SUFFIX = ".md"

_BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def find_markdown_files(root: Path) -> list[Path]:
    """Return all ``*.md`` files under *root*, sorted.

    A missing directory is logged as a warning and yields an empty list.
    """
    if not root.is_dir():
        _log.warning("Directory %s not found", root)
        return []
    return sorted(
        p for p in root.rglob(f"*{_MARKDOWN_SUFFIX}") if p.is_file()
    )


def create_backup(
    path: Path,
    backup_dir: Path,
    now: datetime | None = None,
) -> Path:
    """Copy *path* into *backup_dir* as ``<name>.<timestamp>.backup``.

    Creates *backup_dir* if needed and returns the backup path.
    """
    stamp = (now or datetime.now()).strftime(_BACKUP_TIMESTAMP_FORMAT)
    backup_dir.mkdir(parents=True, exist_ok=True)
    backup_path = backup_dir / f"{path.name}.{stamp}.backup"
    shutil.copy2(path, backup_path)
    return backup_path


# ---------------------------------------------------------------------------
# Optimizer
# ---------------------------------------------------------------------------


class MarkdownOptimizer:
    """Rewrite image references across a set of markdown files.

    Args:
        options: Rewrite switches; ``backup_files`` controls backups.
        backup_dir: Where backups go (default :data:`DEFAULT_BACKUP_DIR`).
        dry_run: Report what would change without writing or backing up.
    """

    def __init__(
        self,
        options: OptimizerOptions | None = None,
        backup_dir: Path = DEFAULT_BACKUP_DIR,
        *,
        dry_run: bool = False,
    ) -> None:
        self._options = options or OptimizerOptions()
        self._backup_dir = backup_dir
        self._dry_run = dry_run

    @property
    def options(self) -> OptimizerOptions:
        return self._options

    def process_file(self, path: Path) -> FileResult:
        """Optimize a single markdown file in place."""
        _log.info("Processing: %s", path)
        try:
            content = path.read_text(encoding="utf-8")
            result = optimize_document(content, self._options)

            if result.references == 0:
                _log.info("  ✓ No images found")
                return FileResult(path, "no-images")

            if not result.changed:
                _log.info("  ✓ Already optimized (%d image(s))", result.references)
                return FileResult(path, "unchanged", references=result.references)

            if self._dry_run:
                _log.info(
                    "  ~ Would optimize %d of %d image(s)",
                    result.optimized, result.references,
                )
                return FileResult(
                    path, "optimized",
                    references=result.references, optimized=result.optimized,
                )

            backup = None
            if self._options.backup_files:
                backup = create_backup(path, self._backup_dir)
                _log.debug("  backup: %s", backup)

            path.write_text(result.content, encoding="utf-8")
            _log.info(
                "  ✨ Optimized %d of %d image(s)",
                result.optimized, result.references,
            )
            return FileResult(
                path, "optimized",
                references=result.references,
                optimized=result.optimized,
                backup=backup,
            )

        except (OSError, UnicodeDecodeError) as e:
            _log.error("  ✗ Error processing %s: %s: %s", path, type(e).__name__, e)
            return FileResult(path, "failed", error=str(e))

    def run(self, paths: list[Path]) -> OptimizationStats:
        """Process every file in *paths* and return aggregate stats."""
        stats = OptimizationStats()
        for path in paths:
            stats.add(self.process_file(path))
        return stats


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

_RECOMMENDATIONS = """\
# Performance Recommendations

1. **Image Format Strategy:**
   - Use WebP for photographs (60-80% smaller)
   - Keep PNG for diagrams and graphics with transparency
   - Convert GIFs to MP4 for animations

2. **Lazy Loading Implementation:**
   - Added `loading="lazy"` to images below the fold
   - Improves initial page load time

3. **Responsive Images:**
   - Use `<picture>` elements for format fallbacks
   - Specify image dimensions to prevent layout shift

4. **CDN and Caching:**
   - Consider using a CDN for image delivery
   - Implement proper cache headers
   - Use progressive JPEG for large photos

5. **Monitoring:**
   - Set up Core Web Vitals monitoring
   - Track Largest Contentful Paint (LCP)
   - Monitor Cumulative Layout Shift (CLS)
"""


def generate_recommendations() -> str:
    """Return the performance recommendations as markdown."""
    return _RECOMMENDATIONS


def write_recommendations(path: Path = DEFAULT_RECOMMENDATIONS_FILE) -> Path:
    """Write :func:`generate_recommendations` output to *path*."""
    path.write_text(generate_recommendations(), encoding="utf-8")
    return path
