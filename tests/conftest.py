"""Shared test fixtures and helpers for md-image-optimizer tests."""

from __future__ import annotations

from pathlib import Path

import pytest


def write_bytes(path: Path, size: int) -> Path:
    """Create *path* (and parents) filled with *size* zero bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\0" * size)
    return path


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """A small docs tree with images, no images, and a nested file."""
    root = tmp_path / "docs"
    (root / "guide").mkdir(parents=True)
    (root / "index.md").write_text(
        "# Index\n\n![Screenshot of the dashboard](./assets/dash.png)\n",
        encoding="utf-8",
    )
    (root / "plain.md").write_text("# No images here\n", encoding="utf-8")
    (root / "guide" / "remote.md").write_text(
        "![logo](https://example.com/logo.png)\n",
        encoding="utf-8",
    )
    (root / "notes.txt").write_text("![x](./assets/x.png)\n", encoding="utf-8")
    return root


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """An assets tree with a mix of small and large images."""
    root = tmp_path / "assets"
    write_bytes(root / "big.png", 300 * 1024)
    write_bytes(root / "small.png", 10 * 1024)
    write_bytes(root / "photos" / "cat.jpg", 150 * 1024)
    write_bytes(root / "photos" / "dog.JPEG", 20 * 1024)
    write_bytes(root / "anim.gif", 5 * 1024)
    write_bytes(root / "icon.svg", 1024)
    write_bytes(root / "readme.txt", 100)
    return root
