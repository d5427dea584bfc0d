"""Entry/essential resolution: which nodes are reachable for free."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from mp_prune.errors import EntryPointError, ManifestError
from mp_prune.extractor.script import is_ambient_declaration
from mp_prune.log import TRACE
from mp_prune.manifest import Manifest, load_manifest, parse_manifest
from mp_prune.models import ProjectStructure

logger = logging.getLogger(__name__)

APP_MANIFEST = "app.json"

# Loaded by the runtime without any reference
IMPLICIT_GLOBAL_FILES = ("app.js", "app.ts", "app.wxss", "app.less")

PROJECT_LEVEL_FILES = (
    "tsconfig.json",
    "jsconfig.json",
    "package.json",
    "mp-prune.config.json",
    "mp-prune.config.yaml",
    "mp-prune.config.yml",
    ".eslintrc.js",
    ".eslintrc.json",
    ".prettierrc",
    ".prettierrc.js",
    ".babelrc",
    "babel.config.js",
)

MINIAPP_LEVEL_FILES = (
    APP_MANIFEST,
    "project.config.json",
    "project.private.config.json",
    "sitemap.json",
    "theme.json",
    "ext.json",
)


def locate_app_manifest(
    miniapp_root: Path,
    entry_file: str | None = None,
    entry_content: dict | None = None,
    log: logging.Logger | None = None,
) -> tuple[Path | None, Manifest | None, list[str]]:
    """Find the root manifest.

    Precedence: an explicit entry_file that exists and parses; then
    entry_content (tied to <miniapp_root>/app.json when that file exists);
    then the default app.json. Failures never raise: they are returned as
    warnings. A manifest that exists but cannot be parsed comes back empty;
    when no manifest was found or supplied at all, the manifest is None.

    Returns (manifest path or None, manifest or None, warnings).
    """
    log = log or logger
    warnings: list[str] = []
    default_path = miniapp_root / APP_MANIFEST

    if entry_file:
        candidate = Path(entry_file)
        if not candidate.is_absolute():
            candidate = miniapp_root / candidate
        candidate = candidate.resolve()
        if candidate.is_file():
            try:
                manifest = load_manifest(candidate)
                log.info("Using entry file %s", candidate)
                return candidate, manifest, warnings
            except ManifestError as e:
                warnings.append(str(e))
                log.warning("Entry file %s is not a usable manifest: %s", candidate, e)
        else:
            msg = f"Entry file does not exist: {candidate}"
            warnings.append(msg)
            log.warning(msg)

    if entry_content is not None:
        try:
            manifest = parse_manifest(entry_content)
            path = default_path if default_path.is_file() else None
            log.debug("Using provided entry content (associated file: %s)", path)
            return path, manifest, warnings
        except ManifestError as e:
            warnings.append(f"Provided entry content is invalid: {e}")
            log.warning("Provided entry content is invalid: %s", e)

    if default_path.is_file():
        try:
            return default_path, load_manifest(default_path), warnings
        except ManifestError as e:
            warnings.append(str(e))
            log.warning("Failed to parse %s: %s", default_path, e)
            return default_path, Manifest(), warnings

    msg = f"No {APP_MANIFEST} found in {miniapp_root}; continuing without manifest entries"
    warnings.append(msg)
    log.warning(msg)
    return None, None, warnings


def implicit_global_files(miniapp_root: Path) -> list[Path]:
    return [miniapp_root / name for name in IMPLICIT_GLOBAL_FILES if (miniapp_root / name).is_file()]


def resolve_essential_files(
    project_root: Path,
    miniapp_root: Path,
    user_files: Iterable[str] = (),
    log: logging.Logger | None = None,
) -> set[Path]:
    """Default config files plus user-specified paths, all absolute.

    User paths are tried against the miniapp root first, then the project root.
    """
    log = log or logger
    essentials: set[Path] = set()
    essentials.update(project_root / name for name in PROJECT_LEVEL_FILES)
    essentials.update(miniapp_root / name for name in MINIAPP_LEVEL_FILES)

    for raw in user_files:
        from_miniapp = (miniapp_root / raw).resolve()
        from_project = (project_root / raw).resolve()
        if from_miniapp.exists():
            essentials.add(from_miniapp)
        elif from_project.exists():
            essentials.add(from_project)
        else:
            log.warning("Essential file not found: %s", raw)
    return essentials


def find_ambient_declaration_files(
    paths: Iterable[Path],
    log: logging.Logger | None = None,
) -> list[Path]:
    """.d.ts files that declare globals and are never imported."""
    log = log or logger
    found: list[Path] = []
    for path in paths:
        if not path.name.endswith(".d.ts"):
            continue
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            log.debug("Cannot read %s: %s", path, e)
            continue
        if is_ambient_declaration(content):
            found.append(path)
    if found:
        log.debug("Keeping %d ambient declaration file(s)", len(found))
    return found


def collect_entry_ids(
    structure: ProjectStructure,
    essential_paths: Iterable[Path],
    log: logging.Logger | None = None,
) -> set[str]:
    """Seed set for the reachability sweep.

    Raises EntryPointError when nothing qualifies: an empty seed would mark
    every file unused.
    """
    log = log or logger
    node_ids = structure.node_ids()
    entries: set[str] = set()
    if structure.root_node_id and structure.root_node_id in node_ids:
        entries.add(structure.root_node_id)

    for path in essential_paths:
        node_id = str(path)
        if node_id in node_ids:
            entries.add(node_id)
        else:
            log.log(TRACE, "Essential path is not a scanned file: %s", node_id)

    if not entries:
        raise EntryPointError(
            f"No entry points found under {structure.miniapp_root}: no manifest, "
            f"implicit app files or essential files. Refusing to report every file as unused."
        )
    return entries
