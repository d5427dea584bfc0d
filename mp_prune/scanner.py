"""File-system scan producing the candidate file list."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Iterable

from mp_prune.filetypes import ASSET_FILE_TYPES

logger = logging.getLogger(__name__)


def matches_glob(relative_path: str, pattern: str) -> bool:
    """Glob match on a POSIX relative path.

    ``**/`` also matches zero directories, and a pattern without a slash
    matches against the file name at any depth.
    """
    pattern = pattern.strip()
    if pattern.startswith("./"):
        pattern = pattern[2:]
    if fnmatch.fnmatchcase(relative_path, pattern):
        return True
    if pattern.startswith("**/") and fnmatch.fnmatchcase(relative_path, pattern[3:]):
        return True
    if pattern.endswith("/**") and (
        relative_path == pattern[:-3] or relative_path.startswith(pattern[:-3] + "/")
    ):
        return True
    if "/" not in pattern and fnmatch.fnmatchcase(relative_path.rsplit("/", 1)[-1], pattern):
        return True
    return False


def matches_any(relative_path: str, patterns: Iterable[str]) -> bool:
    return any(matches_glob(relative_path, p) for p in patterns)


def _type_of(path: Path) -> str:
    return path.suffix.lower().lstrip(".")


class FileScanner:
    """Collects files under a root whose extension is in file_types."""

    def __init__(
        self,
        file_types: Iterable[str],
        exclude_patterns: Iterable[str] = (),
        include_assets: bool = False,
        skip_dirs: list[str] | None = None,
    ):
        types = {t.strip().lower().lstrip(".") for t in file_types if t.strip()}
        if include_assets:
            types.update(ASSET_FILE_TYPES)
        else:
            types.difference_update(ASSET_FILE_TYPES)
        self.file_types = types
        self.exclude_patterns = list(exclude_patterns)
        self.skip_dirs = skip_dirs or [
            "node_modules", "miniprogram_npm", ".git", "__pycache__",
            "dist", "build", "coverage",
        ]

    def scan_directory(self, directory: Path, relative_to: Path | None = None) -> list[Path]:
        """Sorted absolute paths of matching files under directory.

        Exclude patterns are matched against the path relative to
        ``relative_to`` (the project root), defaulting to directory.
        """
        directory = Path(directory).resolve()
        base = Path(relative_to).resolve() if relative_to else directory
        files: list[Path] = []
        for path in sorted(directory.rglob("*")):
            if not path.is_file():
                continue
            rel = path.relative_to(directory)
            if self._should_skip(rel):
                continue
            if _type_of(path) not in self.file_types:
                continue
            try:
                rel_posix = path.relative_to(base).as_posix()
            except ValueError:
                rel_posix = rel.as_posix()
            if self.exclude_patterns and matches_any(rel_posix, self.exclude_patterns):
                logger.debug("Excluded by pattern: %s", rel_posix)
                continue
            files.append(path)
        logger.info("Scanned %d file(s) under %s", len(files), directory)
        return files

    def _should_skip(self, relative: Path) -> bool:
        for part in relative.parts[:-1]:
            for pattern in self.skip_dirs:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False


def scan_files(
    directory: Path,
    file_types: Iterable[str],
    exclude_patterns: Iterable[str] = (),
    include_assets: bool = False,
    skip_dirs: list[str] | None = None,
    relative_to: Path | None = None,
) -> list[Path]:
    scanner = FileScanner(file_types, exclude_patterns, include_assets, skip_dirs)
    return scanner.scan_directory(directory, relative_to=relative_to)
