"""CLI entry point for md-image-optimizer.

Optimize image references in markdown docs and shrink the images they
point to.

Usage::

    md-image-optimizer markdown docs/
    md-image-optimizer markdown docs/ --no-webp --no-backup
    md-image-optimizer compress assets/
    md-image-optimizer analyze assets/
    md-image-optimizer check-size assets/ --max-file-size 500
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import colorlog

from md_image_optimizer import __version__
from md_image_optimizer.assets import (
    DEFAULT_TOP_N,
    MAX_FILE_SIZE,
    MAX_TOTAL_SIZE,
    analyze_assets,
    check_size_budget,
)
from md_image_optimizer.compressor import (
    PNG_MIN_SIZE,
    WEBP_MIN_SIZE,
    ImageCompressor,
    default_backup_dir,
    detect_toolchain,
)
from md_image_optimizer.models import OptimizerOptions, format_summary
from md_image_optimizer.optimizer import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_RECOMMENDATIONS_FILE,
    MarkdownOptimizer,
    find_markdown_files,
    write_recommendations,
)


_log = logging.getLogger("mdimg")

DEFAULT_DOCS_DIR = Path("docs")
DEFAULT_ASSETS_DIR = Path("assets")

_SUMMARY_SEP = "=" * 78
"""Separator line for summary blocks."""

_KB = 1024


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_colorized_logging():
    """Configure colorized logging output."""
    handler = colorlog.StreamHandler()
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)-10s%(reset)s: "
            "%(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)


def _setup_logging(verbose: bool) -> None:
    """Initialize colorized logging and optionally enable debug level."""
    setup_colorized_logging()
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands."""
    # -- Parent parsers for shared argument groups -----------------------------
    verbose_parent = argparse.ArgumentParser(add_help=False)
    verbose_parent.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    assets_parent = argparse.ArgumentParser(add_help=False)
    assets_parent.add_argument(
        "assets_dir",
        nargs="?",
        type=Path,
        default=DEFAULT_ASSETS_DIR,
        help="Assets directory to scan (default: %(default)s)",
    )

    dry_run_parent = argparse.ArgumentParser(add_help=False)
    dry_run_parent.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Report what would change without touching any file",
    )

    # -- Main parser -----------------------------------------------------------
    parser = argparse.ArgumentParser(
        prog="md-image-optimizer",
        description="Optimize image references in markdown documentation "
                    "and compress image assets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  markdown      Add lazy loading / WebP fallbacks to image references
  compress      Compress PNG/JPEG assets with external tools
  analyze       Print an asset analysis report
  check-size    Check assets against size budgets

Examples:
  %(prog)s markdown docs/                     Rewrite image references
  %(prog)s markdown docs/ --dry-run           Preview changes only
  %(prog)s compress assets/                   Compress and add WebP siblings
  %(prog)s analyze assets/ --top 20           Show the 20 largest files
  %(prog)s check-size assets/                 Fail on oversized images

Run '%(prog)s COMMAND --help' for command-specific options.
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # -- markdown --------------------------------------------------------------
    p_md = subparsers.add_parser(
        "markdown",
        parents=[verbose_parent, dry_run_parent],
        formatter_class=argparse.RawDescriptionHelpFormatter,
        help="Optimize image references in markdown files",
        description="Rewrite asset image references as <picture> blocks "
                    "with WebP sources and add lazy loading to <img> tags.",
        epilog="""
Examples:
  %(prog)s docs/                            Optimize every .md under docs/
  %(prog)s docs/ --no-webp                  Plain <img> instead of <picture>
  %(prog)s docs/ --no-backup                Do not keep backups
        """,
    )
    p_md.add_argument(
        "docs_dir",
        nargs="?",
        type=Path,
        default=DEFAULT_DOCS_DIR,
        help="Directory searched recursively for .md files "
             "(default: %(default)s)",
    )
    p_md.add_argument(
        "--no-lazy",
        action="store_true",
        help='Do not add loading="lazy" to existing <img> tags',
    )
    p_md.add_argument(
        "--no-webp",
        action="store_true",
        help="Do not wrap asset images in <picture> with a WebP source",
    )
    p_md.add_argument(
        "--no-alt-text",
        action="store_true",
        help="Leave alt text as written",
    )
    p_md.add_argument(
        "--no-backup",
        action="store_true",
        help="Do not back up files before rewriting them",
    )
    p_md.add_argument(
        "--backup-dir",
        type=Path,
        default=DEFAULT_BACKUP_DIR,
        metavar="DIR",
        help="Backup directory (default: %(default)s)",
    )
    p_md.add_argument(
        "--recommendations",
        type=Path,
        default=DEFAULT_RECOMMENDATIONS_FILE,
        metavar="FILE",
        help="Where to write performance recommendations "
             "(default: %(default)s)",
    )
    p_md.add_argument(
        "--no-recommendations",
        action="store_true",
        help="Skip writing the recommendations file",
    )

    # -- compress --------------------------------------------------------------
    p_compress = subparsers.add_parser(
        "compress",
        parents=[verbose_parent, assets_parent, dry_run_parent],
        formatter_class=argparse.RawDescriptionHelpFormatter,
        help="Compress image assets with optipng/pngquant/jpegoptim/cwebp",
        description="Compress large PNGs and all JPEGs in place (originals "
                    "are backed up first) and generate WebP siblings for "
                    "large images.",
    )
    p_compress.add_argument(
        "--png-min-size",
        type=int,
        default=PNG_MIN_SIZE // _KB,
        metavar="KB",
        help="Only compress PNGs larger than this (default: %(default)s KB)",
    )
    p_compress.add_argument(
        "--webp-min-size",
        type=int,
        default=WEBP_MIN_SIZE // _KB,
        metavar="KB",
        help="Only generate WebP for images larger than this "
             "(default: %(default)s KB)",
    )
    p_compress.add_argument(
        "--no-webp",
        action="store_true",
        help="Skip WebP generation",
    )
    p_compress.add_argument(
        "--backup-dir",
        type=Path,
        default=None,
        metavar="DIR",
        help="Backup directory (default: assets-backup-<timestamp>)",
    )

    # -- analyze ---------------------------------------------------------------
    p_analyze = subparsers.add_parser(
        "analyze",
        parents=[verbose_parent, assets_parent],
        help="Print an asset analysis report",
        description="Count images by type and list the largest files.",
    )
    p_analyze.add_argument(
        "--top",
        type=int,
        default=DEFAULT_TOP_N,
        metavar="N",
        help="Number of largest files to list (default: %(default)s)",
    )

    # -- check-size ------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check-size",
        parents=[verbose_parent, assets_parent],
        help="Check assets against size budgets",
        description="Exit with status 1 when any image or the directory "
                    "total exceeds its size budget.",
    )
    p_check.add_argument(
        "--max-file-size",
        type=int,
        default=MAX_FILE_SIZE // 1000,
        metavar="KB",
        help="Per-image limit in kilobytes (default: %(default)s)",
    )
    p_check.add_argument(
        "--max-total-size",
        type=int,
        default=MAX_TOTAL_SIZE // 1_000_000,
        metavar="MB",
        help="Limit for the whole directory in megabytes "
             "(default: %(default)s)",
    )

    return parser


def _options_from_args(args: argparse.Namespace) -> OptimizerOptions:
    """Build :class:`OptimizerOptions` from ``markdown`` subcommand flags."""
    return OptimizerOptions(
        add_lazy_loading=not args.no_lazy,
        use_webp=not args.no_webp,
        optimize_alt_text=not args.no_alt_text,
        backup_files=not args.no_backup,
    )


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_markdown(args: argparse.Namespace) -> int:
    """Handle the ``markdown`` command."""
    _setup_logging(args.verbose)

    docs_dir: Path = args.docs_dir
    if not docs_dir.is_dir():
        _log.error("Directory not found: %s", docs_dir)
        return 1

    options = _options_from_args(args)
    _log.info("md-image-optimizer %s", __version__)

    files = find_markdown_files(docs_dir)
    if not files:
        _log.error("No markdown files found in %s", docs_dir)
        return 1
    _log.info("Found %d markdown file(s)", len(files))
    if args.dry_run:
        _log.info("Dry run: no files will be written")

    start = time.time()
    optimizer = MarkdownOptimizer(options, args.backup_dir, dry_run=args.dry_run)
    stats = optimizer.run(files)

    _log.info("")
    _log.info(_SUMMARY_SEP)
    for line in format_summary(stats).split("\n"):
        _log.info(line)
    _log.info("Total time: %.1fs", time.time() - start)
    _log.info(_SUMMARY_SEP)

    if not args.no_recommendations and not args.dry_run:
        try:
            path = write_recommendations(args.recommendations)
        except OSError as e:
            _log.error("Could not write recommendations: %s", e)
            return 1
        _log.info("Performance recommendations saved to %s", path)

    return 1 if stats.files_failed else 0


def _cmd_compress(args: argparse.Namespace) -> int:
    """Handle the ``compress`` command."""
    _setup_logging(args.verbose)

    assets_dir: Path = args.assets_dir
    if not assets_dir.is_dir():
        _log.error(
            "Assets directory not found: %s. Run from the repository root "
            "or pass the directory explicitly.", assets_dir,
        )
        return 1
    if args.png_min_size < 0 or args.webp_min_size < 0:
        _log.error("--png-min-size and --webp-min-size must not be negative")
        return 1

    toolchain = detect_toolchain()
    toolchain.log_status()

    backup_dir = args.backup_dir or default_backup_dir()
    _log.info("Backup directory: %s", backup_dir)

    compressor = ImageCompressor(
        toolchain, backup_dir, root=assets_dir, dry_run=args.dry_run,
    )
    try:
        summary = compressor.run(
            assets_dir,
            png_min_size=args.png_min_size * _KB,
            webp_min_size=args.webp_min_size * _KB,
            webp=not args.no_webp,
        )
    except OSError as e:
        _log.error("Fatal error: %s", e)
        return 1

    _log.info("")
    _log.info(_SUMMARY_SEP)
    for line in summary.format().split("\n"):
        _log.info(line)
    _log.info(_SUMMARY_SEP)
    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    """Handle the ``analyze`` command."""
    _setup_logging(args.verbose)

    if not args.assets_dir.is_dir():
        _log.error("Assets directory not found: %s", args.assets_dir)
        return 1

    report = analyze_assets(args.assets_dir, top_n=args.top)
    for line in report.format().split("\n"):
        _log.info(line)
    return 0


def _cmd_check_size(args: argparse.Namespace) -> int:
    """Handle the ``check-size`` command."""
    _setup_logging(args.verbose)

    if not args.assets_dir.is_dir():
        _log.error("Assets directory not found: %s", args.assets_dir)
        return 1

    result = check_size_budget(
        args.assets_dir,
        max_file_size=args.max_file_size * 1000,
        max_total_size=args.max_total_size * 1_000_000,
    )
    result.log_all()
    return 0 if result.ok else 1


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = _build_parser()

    if argv is None:
        argv = sys.argv[1:]

    # Show help if no arguments provided.
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    handlers = {
        "markdown": _cmd_markdown,
        "compress": _cmd_compress,
        "analyze": _cmd_analyze,
        "check-size": _cmd_check_size,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
