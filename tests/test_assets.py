"""Tests for asset analysis and size-budget checks."""

from __future__ import annotations

from pathlib import Path

from md_image_optimizer.assets import (
    JPEG_SUFFIXES,
    PNG_SUFFIXES,
    RASTER_SUFFIXES,
    analyze_assets,
    check_size_budget,
    find_images,
)


class TestFindImages:

    def test_case_insensitive_suffix(self, assets_dir: Path):
        names = [p.name for p in find_images(assets_dir, JPEG_SUFFIXES)]
        assert names == ["cat.jpg", "dog.JPEG"]

    def test_min_size(self, assets_dir: Path):
        names = [p.name for p in find_images(assets_dir, PNG_SUFFIXES, min_size=100 * 1024)]
        assert names == ["big.png"]

    def test_missing_root(self, tmp_path: Path):
        assert find_images(tmp_path / "none", RASTER_SUFFIXES) == []


class TestAnalyzeAssets:

    def test_counts(self, assets_dir: Path):
        report = analyze_assets(assets_dir)
        assert report.counts["png"] == 2
        assert report.counts["jpeg"] == 2
        assert report.counts["gif"] == 1
        assert report.counts["svg"] == 1
        assert report.counts["webp"] == 0

    def test_total_size_includes_all_files(self, assets_dir: Path):
        expected = sum(p.stat().st_size for p in assets_dir.rglob("*") if p.is_file())
        assert analyze_assets(assets_dir).total_size == expected

    def test_largest_sorted_and_limited(self, assets_dir: Path):
        report = analyze_assets(assets_dir, top_n=2)
        assert [p.name for p, _ in report.largest] == ["big.png", "cat.jpg"]

    def test_svg_not_in_largest(self, assets_dir: Path):
        names = [p.name for p, _ in analyze_assets(assets_dir).largest]
        assert "icon.svg" not in names
        assert len(names) == 5

    def test_large_files(self, assets_dir: Path):
        report = analyze_assets(assets_dir)
        assert [p.name for p, _ in report.large_files] == ["big.png"]

    def test_format(self, assets_dir: Path):
        text = analyze_assets(assets_dir).format()
        assert "PNG   files: 2" in text
        assert "300K - " in text

    def test_missing_root(self, tmp_path: Path):
        report = analyze_assets(tmp_path / "none")
        assert report.total_size == 0
        assert not report.counts


class TestCheckSizeBudget:

    def test_within_budget(self, assets_dir: Path):
        result = check_size_budget(assets_dir)
        assert result.ok
        assert result.violations == 0

    def test_file_violation(self, assets_dir: Path):
        result = check_size_budget(assets_dir, max_file_size=100_000)
        assert sorted(p.name for p, _ in result.oversized) == ["big.png", "cat.jpg"]
        assert result.violations == 2
        assert not result.ok

    def test_total_violation(self, assets_dir: Path):
        result = check_size_budget(assets_dir, max_total_size=1000)
        assert result.total_exceeded
        assert result.violations == 1

    def test_non_raster_never_oversized(self, tmp_path: Path):
        (tmp_path / "big.svg").write_bytes(b"x" * 2000)
        result = check_size_budget(tmp_path, max_file_size=1000, max_total_size=10_000)
        assert result.ok
