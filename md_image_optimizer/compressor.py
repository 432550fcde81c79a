"""Lossy/lossless image compression via external command-line tools.

No image decoding happens in Python.  PNGs go through ``optipng`` and
then ``pngquant``, JPEGs through ``jpegoptim``, and ``cwebp`` produces
``.webp`` siblings for large rasters.  Missing tools are skipped with a
warning; a failing tool is logged and the batch carries on.

Every file is copied to a timestamped backup directory before it is
modified in place.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from md_image_optimizer.assets import JPEG_SUFFIXES, PNG_SUFFIXES, find_images
from md_image_optimizer.models import format_size, percent_saved
from md_image_optimizer.rewriter import webp_sibling

_log = logging.getLogger("compressor")

PNG_MIN_SIZE = 100 * 1024
"""Only PNGs larger than this are recompressed."""

WEBP_MIN_SIZE = 100 * 1024
"""Only rasters larger than this get a ``.webp`` sibling."""

WEBP_QUALITY = 80
"""``cwebp -q`` value."""

JPEG_MAX_QUALITY = 85
"""``jpegoptim --max`` value."""

PNGQUANT_QUALITY = "70-85"

_PNGQUANT_SKIP_CODES = frozenset({98, 99})
"""pngquant exit codes meaning "not worth it" (larger output / quality too low)."""

_INSTALL_HINTS = (
    "Ubuntu/Debian: sudo apt install optipng pngquant jpegoptim webp",
    "macOS: brew install optipng pngquant jpegoptim webp",
    "Windows: choco install optipng pngquant jpegoptim webp",
)


def default_backup_dir(now: datetime | None = None) -> Path:
    """Return ``assets-backup-YYYYmmdd-HHMMSS`` for *now*."""
    return Path(f"assets-backup-{(now or datetime.now()):%Y%m%d-%H%M%S}")


# ---------------------------------------------------------------------------
# Toolchain detection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Toolchain:
    """Resolved paths of the external compressors (``None`` = not installed)."""

    optipng: str | None = None
    pngquant: str | None = None
    jpegoptim: str | None = None
    cwebp: str | None = None

    @property
    def missing(self) -> list[str]:
        """Names of tools that were not found on ``PATH``."""
        return [
            name for name in ("optipng", "pngquant", "jpegoptim", "cwebp")
            if getattr(self, name) is None
        ]

    def log_status(self) -> None:
        missing = self.missing
        if not missing:
            _log.info("✓ All optimization tools are available")
            return
        _log.warning("⚠ Missing optimization tools: %s", ", ".join(missing))
        _log.warning("Install them with:")
        for hint in _INSTALL_HINTS:
            _log.warning("  %s", hint)
        _log.warning("Continuing with available tools...")


def detect_toolchain() -> Toolchain:
    """Look up every supported compressor on ``PATH``."""
    return Toolchain(
        optipng=shutil.which("optipng"),
        pngquant=shutil.which("pngquant"),
        jpegoptim=shutil.which("jpegoptim"),
        cwebp=shutil.which("cwebp"),
    )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class CompressionResult:
    """Size change of one file (or of one generated WebP sibling)."""

    path: Path
    size_before: int
    size_after: int
    tools: list[str] = field(default_factory=list)
    """Tools that ran successfully on the file."""
    output: Path | None = None
    """Generated file, for WebP conversion."""

    @property
    def saved(self) -> int:
        return self.size_before - self.size_after

    @property
    def percent(self) -> int:
        return percent_saved(self.size_before, self.size_after)


@dataclass
class CompressionSummary:
    """Results of a full :meth:`ImageCompressor.run`."""

    png: list[CompressionResult] = field(default_factory=list)
    jpeg: list[CompressionResult] = field(default_factory=list)
    webp: list[CompressionResult] = field(default_factory=list)
    backup_dir: Path | None = None

    @property
    def size_before(self) -> int:
        return sum(r.size_before for r in (*self.png, *self.jpeg))

    @property
    def size_after(self) -> int:
        return sum(r.size_after for r in (*self.png, *self.jpeg))

    @property
    def saved(self) -> int:
        return self.size_before - self.size_after

    def format(self) -> str:
        lines = []
        for label, results in (("PNG", self.png), ("JPEG", self.jpeg)):
            before = sum(r.size_before for r in results)
            after = sum(r.size_after for r in results)
            improved = sum(1 for r in results if r.saved > 0)
            lines.append(
                f"{label}: {len(results)} file(s), {improved} smaller, "
                f"{format_size(before)} -> {format_size(after)} "
                f"(saved {format_size(before - after)}, "
                f"{percent_saved(before, after)}%)"
            )
        lines.append(f"WebP files generated: {len(self.webp)}")
        lines.append(
            f"Total saved: {format_size(self.saved)} "
            f"({percent_saved(self.size_before, self.size_after)}%)"
        )
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Compressor
# ---------------------------------------------------------------------------


def _run_tool(cmd: list[str]) -> subprocess.CompletedProcess[str]:
    _log.debug("    $ %s", " ".join(cmd))
    return subprocess.run(cmd, capture_output=True, text=True, check=False)


class ImageCompressor:
    """Compress images in place with the available external tools.

    Args:
        toolchain: Tool paths (see :func:`detect_toolchain`).
        backup_dir: Originals are copied here before modification.
        root: Base for backup-relative paths; files outside it are backed
            up by name only.
        dry_run: Only report what would be processed.
    """

    def __init__(
        self,
        toolchain: Toolchain,
        backup_dir: Path,
        *,
        root: Path | None = None,
        dry_run: bool = False,
    ) -> None:
        self._tools = toolchain
        self._backup_dir = backup_dir
        self._root = root
        self._dry_run = dry_run

    # -- helpers -----------------------------------------------------------

    def _backup(self, path: Path) -> Path:
        rel = Path(path.name)
        if self._root is not None:
            try:
                rel = path.relative_to(self._root)
            except ValueError:
                pass
        target = self._backup_dir / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
        return target

    def _apply(self, path: Path, name: str, cmd: list[str], tools: list[str]) -> None:
        try:
            proc = _run_tool(cmd)
        except OSError as e:
            _log.warning("  ⚠ %s failed for %s: %s", name, path, e)
            return
        if proc.returncode == 0:
            tools.append(name)
        elif name == "pngquant" and proc.returncode in _PNGQUANT_SKIP_CODES:
            _log.debug("    pngquant skipped %s (exit %d)", path, proc.returncode)
        else:
            detail = (proc.stderr or proc.stdout).strip()
            _log.warning(
                "  ⚠ %s failed for %s (exit %d)%s",
                name, path, proc.returncode, f": {detail}" if detail else "",
            )

    def _log_result(self, result: CompressionResult) -> None:
        _log.info(
            "  ✨ %s: saved %s (%d%%)",
            result.path.name, format_size(result.saved), result.percent,
        )

    # -- operations --------------------------------------------------------

    def compress_png(self, path: Path) -> CompressionResult:
        """Run ``optipng`` then ``pngquant`` on *path* in place."""
        size_before = path.stat().st_size
        _log.info("Optimizing: %s (%s)", path, format_size(size_before))
        tools: list[str] = []
        if self._dry_run:
            return CompressionResult(path, size_before, size_before, tools)

        self._backup(path)
        if self._tools.optipng:
            self._apply(path, "optipng", [self._tools.optipng, "-o2", "-quiet", str(path)], tools)
        if self._tools.pngquant:
            self._apply(
                path, "pngquant",
                [
                    self._tools.pngquant, f"--quality={PNGQUANT_QUALITY}",
                    "--ext", ".png", "--force", str(path),
                ],
                tools,
            )
        result = CompressionResult(path, size_before, path.stat().st_size, tools)
        self._log_result(result)
        return result

    def compress_jpeg(self, path: Path) -> CompressionResult:
        """Run ``jpegoptim`` on *path* in place."""
        size_before = path.stat().st_size
        _log.info("Optimizing: %s (%s)", path, format_size(size_before))
        tools: list[str] = []
        if self._dry_run:
            return CompressionResult(path, size_before, size_before, tools)

        self._backup(path)
        if self._tools.jpegoptim:
            self._apply(
                path, "jpegoptim",
                [
                    self._tools.jpegoptim, f"--max={JPEG_MAX_QUALITY}",
                    "--strip-all", "--quiet", str(path),
                ],
                tools,
            )
        result = CompressionResult(path, size_before, path.stat().st_size, tools)
        self._log_result(result)
        return result

    def generate_webp(self, path: Path, quality: int = WEBP_QUALITY) -> CompressionResult | None:
        """Create ``<stem>.webp`` next to *path* with ``cwebp``.

        Returns ``None`` when the sibling already exists, ``cwebp`` is not
        installed, or the conversion fails.
        """
        if not 0 <= quality <= 100:
            raise ValueError(f"WebP quality must be 0-100, got {quality}")
        target = Path(webp_sibling(str(path)))
        if target == path or target.exists():
            return None
        if self._tools.cwebp is None:
            return None
        size_before = path.stat().st_size
        if self._dry_run:
            _log.info("Would generate: %s", target)
            return None

        tools: list[str] = []
        self._apply(
            path, "cwebp",
            [self._tools.cwebp, "-q", str(quality), str(path), "-o", str(target)],
            tools,
        )
        if not tools or not target.exists():
            return None
        result = CompressionResult(
            path, size_before, target.stat().st_size, tools, output=target,
        )
        _log.info(
            "  ✨ %s: %s smaller (%d%%)",
            target.name, format_size(result.saved), result.percent,
        )
        return result

    def run(
        self,
        root: Path,
        *,
        png_min_size: int = PNG_MIN_SIZE,
        webp_min_size: int = WEBP_MIN_SIZE,
        webp: bool = True,
    ) -> CompressionSummary:
        """Compress large PNGs and all JPEGs under *root*, then add WebP siblings."""
        if png_min_size < 0 or webp_min_size < 0:
            raise ValueError("Minimum sizes must not be negative")
        summary = CompressionSummary(backup_dir=self._backup_dir)

        pngs = find_images(root, PNG_SUFFIXES, min_size=png_min_size)
        _log.info("Found %d PNG file(s) larger than %s", len(pngs), format_size(png_min_size))
        for path in pngs:
            summary.png.append(self.compress_png(path))

        jpegs = find_images(root, JPEG_SUFFIXES)
        _log.info("Found %d JPEG file(s)", len(jpegs))
        for path in jpegs:
            summary.jpeg.append(self.compress_jpeg(path))

        if webp:
            candidates = find_images(root, PNG_SUFFIXES + JPEG_SUFFIXES, min_size=webp_min_size)
            for path in candidates:
                result = self.generate_webp(path)
                if result is not None:
                    summary.webp.append(result)

        return summary
