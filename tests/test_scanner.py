"""Tests for the file scanner and glob matching."""

from pathlib import Path

import pytest

from mp_prune.scanner import FileScanner, matches_glob, scan_files


def _touch(root: Path, *rels):
    for rel in rels:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")


@pytest.mark.parametrize("path,pattern,expected", [
    ("a.js", "*.js", True),
    ("pages/a.js", "*.js", True),
    ("pages/a.js", "pages/*.js", True),
    ("pages/index/a.js", "pages/*.js", True),  # fnmatch '*' crosses '/'
    ("a.js", "**/*.js", True),
    ("deep/er/a.js", "**/*.js", True),
    ("legacy/x/y.wxml", "legacy/**", True),
    ("legacy", "legacy/**", True),
    ("legacyx/a.js", "legacy/**", False),
    ("a.wxss", "*.js", False),
    ("pages/a.js", "./pages/a.js", True),
])
def test_matches_glob(path, pattern, expected):
    assert matches_glob(path, pattern) is expected


class TestFileScanner:
    def test_filters_by_type(self, tmp_path):
        _touch(tmp_path, "a.js", "b.wxml", "c.md", "d.png")
        files = scan_files(tmp_path, ["js", "wxml"])
        assert [f.name for f in files] == ["a.js", "b.wxml"]

    def test_returns_absolute_sorted(self, tmp_path):
        _touch(tmp_path, "z.js", "a/b.js", "m.js")
        files = scan_files(tmp_path, ["js"])
        assert all(f.is_absolute() for f in files)
        assert files == sorted(files)

    def test_skips_dependency_dirs(self, tmp_path):
        _touch(tmp_path, "a.js", "node_modules/lib/x.js", "miniprogram_npm/y/index.js")
        files = scan_files(tmp_path, ["js"])
        assert [f.name for f in files] == ["a.js"]

    def test_include_assets(self, tmp_path):
        _touch(tmp_path, "a.js", "img/a.png", "img/b.jpg")
        assert len(scan_files(tmp_path, ["js"], include_assets=False)) == 1
        assert len(scan_files(tmp_path, ["js"], include_assets=True)) == 3

    def test_asset_types_need_include_assets(self, tmp_path):
        _touch(tmp_path, "a.png")
        scanner = FileScanner(["js", "png"])
        assert "png" not in scanner.file_types
        assert scanner.scan_directory(tmp_path) == []

    def test_exclude_relative_to_project_root(self, tmp_path):
        _touch(tmp_path, "miniprogram/a.js", "miniprogram/legacy/b.js")
        files = scan_files(
            tmp_path / "miniprogram", ["js"],
            exclude_patterns=["miniprogram/legacy/**"],
            relative_to=tmp_path,
        )
        assert [f.name for f in files] == ["a.js"]

    def test_types_normalized(self, tmp_path):
        _touch(tmp_path, "a.js", "b.ts")
        assert len(scan_files(tmp_path, [".JS", " ts "])) == 2
