"""Tests for CLI argument parsing and subcommand dispatch.

External compressors are never invoked: ``compress`` runs are either
dry runs or use a patched toolchain.
"""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from md_image_optimizer.cli import _build_parser, _options_from_args, main
from md_image_optimizer.compressor import Toolchain


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse(argv: list[str]):
    """Parse *argv* using the CLI parser and return the namespace."""
    parser = _build_parser()
    return parser.parse_args(argv)


def _parse_fails(argv: list[str]):
    """Assert that parsing *argv* raises SystemExit (argparse error)."""
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(argv)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI handlers reconfigure the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# ---------------------------------------------------------------------------
# markdown subcommand
# ---------------------------------------------------------------------------


class TestMarkdownArgs:
    """Argument parsing for the ``markdown`` subcommand."""

    def test_defaults(self):
        args = _parse(["markdown"])
        assert args.command == "markdown"
        assert args.docs_dir == Path("docs")
        assert args.no_lazy is False
        assert args.no_webp is False
        assert args.no_alt_text is False
        assert args.no_backup is False
        assert args.dry_run is False
        assert args.verbose is False
        assert args.backup_dir == Path("markdown-backup")

    def test_all_options(self):
        args = _parse([
            "markdown", "site/",
            "--no-lazy", "--no-webp", "--no-alt-text", "--no-backup",
            "--backup-dir", "/tmp/bk",
            "--recommendations", "rec.md",
            "-n", "-v",
        ])
        assert args.docs_dir == Path("site/")
        assert args.dry_run is True
        assert args.verbose is True
        assert str(args.backup_dir) == "/tmp/bk"
        assert str(args.recommendations) == "rec.md"

    def test_options_mapping(self):
        opts = _options_from_args(_parse(["markdown", "--no-lazy", "--no-backup"]))
        assert opts.add_lazy_loading is False
        assert opts.backup_files is False
        assert opts.use_webp is True
        assert opts.optimize_alt_text is True

    def test_rejects_compress_only_flags(self):
        _parse_fails(["markdown", "--png-min-size", "10"])


class TestAssetCommandArgs:

    def test_compress_defaults(self):
        args = _parse(["compress"])
        assert args.assets_dir == Path("assets")
        assert args.png_min_size == 100
        assert args.webp_min_size == 100
        assert args.no_webp is False
        assert args.backup_dir is None

    def test_analyze_top(self):
        assert _parse(["analyze", "imgs", "--top", "3"]).top == 3

    def test_check_size_defaults(self):
        args = _parse(["check-size"])
        assert args.max_file_size == 500
        assert args.max_total_size == 50

    def test_unknown_command(self):
        _parse_fails(["shrink"])


# ---------------------------------------------------------------------------
# main() dispatch
# ---------------------------------------------------------------------------


class TestMain:

    def test_no_args_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage:" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "md-image-optimizer" in capsys.readouterr().out

    def test_markdown_run(self, docs_dir: Path, tmp_path: Path):
        rec = tmp_path / "rec.md"
        code = main([
            "markdown", str(docs_dir),
            "--backup-dir", str(tmp_path / "bk"),
            "--recommendations", str(rec),
        ])
        assert code == 0
        assert "<picture>" in (docs_dir / "index.md").read_text(encoding="utf-8")
        assert rec.is_file()
        assert len(list((tmp_path / "bk").iterdir())) == 1

    def test_markdown_dry_run(self, docs_dir: Path, tmp_path: Path):
        before = (docs_dir / "index.md").read_text(encoding="utf-8")
        rec = tmp_path / "rec.md"
        code = main(["markdown", str(docs_dir), "-n", "--recommendations", str(rec)])
        assert code == 0
        assert (docs_dir / "index.md").read_text(encoding="utf-8") == before
        assert not rec.exists()

    def test_markdown_missing_dir(self, tmp_path: Path):
        assert main(["markdown", str(tmp_path / "nope")]) == 1

    def test_markdown_empty_dir(self, tmp_path: Path):
        assert main(["markdown", str(tmp_path)]) == 1

    def test_compress_missing_dir(self, tmp_path: Path):
        assert main(["compress", str(tmp_path / "nope")]) == 1

    def test_compress_without_tools(self, assets_dir: Path, tmp_path: Path):
        with patch("md_image_optimizer.cli.detect_toolchain", return_value=Toolchain()):
            code = main([
                "compress", str(assets_dir), "--backup-dir", str(tmp_path / "bk"),
            ])
        assert code == 0
        assert (tmp_path / "bk" / "big.png").exists()

    def test_compress_negative_size(self, assets_dir: Path):
        assert main(["compress", str(assets_dir), "--png-min-size", "-5"]) == 1

    def test_analyze(self, assets_dir: Path):
        assert main(["analyze", str(assets_dir)]) == 0

    def test_check_size_ok(self, assets_dir: Path):
        assert main(["check-size", str(assets_dir)]) == 0

    def test_check_size_violation(self, assets_dir: Path):
        assert main(["check-size", str(assets_dir), "--max-file-size", "200"]) == 1
