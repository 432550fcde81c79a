"""Tests for file-level markdown optimization (discovery, backups, batches)."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from unittest.mock import patch

from md_image_optimizer.models import OptimizerOptions
from md_image_optimizer.optimizer import (
    MarkdownOptimizer,
    create_backup,
    find_markdown_files,
    generate_recommendations,
    write_recommendations,
)


class TestFindMarkdownFiles:

    def test_recursive_sorted_md_only(self, docs_dir: Path):
        files = find_markdown_files(docs_dir)
        assert files == sorted(files)
        names = [f.relative_to(docs_dir).as_posix() for f in files]
        assert names == ["guide/remote.md", "index.md", "plain.md"]

    def test_missing_directory(self, tmp_path: Path):
        assert find_markdown_files(tmp_path / "nope") == []


class TestCreateBackup:

    def test_backup_name_and_content(self, tmp_path: Path):
        src = tmp_path / "page.md"
        src.write_text("original", encoding="utf-8")
        backup_dir = tmp_path / "backups"
        backup = create_backup(src, backup_dir, now=datetime(2024, 5, 6, 7, 8, 9))
        assert backup == backup_dir / "page.md.2024-05-06T07-08-09.backup"
        assert backup.read_text(encoding="utf-8") == "original"


class TestProcessFile:

    def test_optimizes_and_backs_up(self, docs_dir: Path, tmp_path: Path):
        backup_dir = tmp_path / "bk"
        optimizer = MarkdownOptimizer(backup_dir=backup_dir)
        path = docs_dir / "index.md"
        original = path.read_text(encoding="utf-8")

        result = optimizer.process_file(path)

        assert result.status == "optimized"
        assert result.references == 1
        assert result.optimized == 1
        assert result.backup is not None
        assert result.backup.read_text(encoding="utf-8") == original
        content = path.read_text(encoding="utf-8")
        assert '<source srcset="./assets/dash.webp" type="image/webp">' in content
        assert 'alt="Dashboard"' in content
        assert content.startswith("# Index\n\n<picture>")

    def test_no_backup_option(self, docs_dir: Path, tmp_path: Path):
        backup_dir = tmp_path / "bk"
        optimizer = MarkdownOptimizer(OptimizerOptions(backup_files=False), backup_dir)
        result = optimizer.process_file(docs_dir / "index.md")
        assert result.status == "optimized"
        assert result.backup is None
        assert not backup_dir.exists()

    def test_no_images(self, docs_dir: Path, tmp_path: Path):
        result = MarkdownOptimizer(backup_dir=tmp_path / "bk").process_file(
            docs_dir / "plain.md",
        )
        assert result.status == "no-images"

    def test_unchanged_file_not_written(self, docs_dir: Path, tmp_path: Path):
        path = docs_dir / "guide" / "remote.md"
        with patch.object(Path, "write_text") as write:
            result = MarkdownOptimizer(backup_dir=tmp_path / "bk").process_file(path)
        assert result.status == "unchanged"
        assert result.references == 1
        write.assert_not_called()

    def test_dry_run_writes_nothing(self, docs_dir: Path, tmp_path: Path):
        path = docs_dir / "index.md"
        original = path.read_text(encoding="utf-8")
        backup_dir = tmp_path / "bk"
        result = MarkdownOptimizer(backup_dir=backup_dir, dry_run=True).process_file(path)
        assert result.status == "optimized"
        assert result.optimized == 1
        assert path.read_text(encoding="utf-8") == original
        assert not backup_dir.exists()

    def test_unreadable_file_reports_failure(self, tmp_path: Path):
        result = MarkdownOptimizer(backup_dir=tmp_path / "bk").process_file(
            tmp_path / "missing.md",
        )
        assert result.status == "failed"
        assert result.error

    def test_invalid_utf8_reports_failure(self, tmp_path: Path):
        path = tmp_path / "latin1.md"
        path.write_bytes(b"\xff\xfe ![x](./assets/x.png)")
        result = MarkdownOptimizer(backup_dir=tmp_path / "bk").process_file(path)
        assert result.status == "failed"


class TestRun:

    def test_aggregates_and_continues_after_failure(self, docs_dir: Path, tmp_path: Path):
        files = find_markdown_files(docs_dir)
        files.insert(0, docs_dir / "ghost.md")
        stats = MarkdownOptimizer(backup_dir=tmp_path / "bk").run(files)
        assert stats.files_failed == 1
        assert stats.files_processed == 2  # index.md + remote.md
        assert stats.files_changed == 1
        assert stats.images_found == 2
        assert stats.images_optimized == 1
        assert stats.backups_created == 1


class TestRecommendations:

    def test_content(self):
        text = generate_recommendations()
        assert text.startswith("# Performance Recommendations")
        assert 'loading="lazy"' in text
        assert "<picture>" in text

    def test_write(self, tmp_path: Path):
        out = write_recommendations(tmp_path / "rec.md")
        assert out.read_text(encoding="utf-8") == generate_recommendations()
