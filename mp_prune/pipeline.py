"""Analysis pipeline: scan -> extract (parallel) -> build graph -> seed -> reach."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable

from mp_prune.analysis.entry_points import (
    collect_entry_ids,
    find_ambient_declaration_files,
    implicit_global_files,
    locate_app_manifest,
    resolve_essential_files,
)
from mp_prune.analysis.graph_builder import ProjectStructureBuilder
from mp_prune.analysis.reachability import find_reachable, find_unused_files
from mp_prune.errors import ConfigurationError, ExtractionError
from mp_prune.extractor import Reference, extract_tagged_references, extractor_for
from mp_prune.log import get_logger
from mp_prune.models import AnalysisResult, AnalyzerConfig
from mp_prune.resolver import PathResolver, load_tsconfig_aliases, merge_aliases
from mp_prune.scanner import scan_files

ProgressCallback = Callable[[str, int, int], None]


def extract_file(path: Path) -> list[Reference]:
    """Read one file and return its (raw reference, tag) pairs.

    Any failure is re-raised as ExtractionError so callers can isolate it.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(path, f"cannot read: {e}") from e
    try:
        return extract_tagged_references(path, content)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(path, f"{type(e).__name__}: {e}") from e


def run_extraction(
    files: list[Path],
    max_workers: int | None = None,
    progress: ProgressCallback | None = None,
    log: logging.Logger | None = None,
) -> tuple[dict[Path, list[Reference]], list[str]]:
    """Extract references from every parseable file on a worker pool.

    Returns (references by file, warnings). A failing file contributes no
    references and one warning.
    """
    log = log or logging.getLogger(__name__)
    targets = [f for f in files if extractor_for(f) is not None]
    references: dict[Path, list[Reference]] = {}
    warnings: list[str] = []
    total = len(targets)
    if progress:
        progress("Extracting", 0, total)

    workers = max_workers or os.cpu_count() or 1
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(extract_file, path): path for path in targets}
        for done, future in enumerate(as_completed(futures), start=1):
            path = futures[future]
            try:
                references[path] = future.result()
            except ExtractionError as e:
                warnings.append(str(e))
                log.warning("Extraction failed: %s", e)
                references[path] = []
            if progress:
                progress("Extracting", done, total)

    # as_completed order is arbitrary; keep graph assembly deterministic
    return dict(sorted(references.items())), warnings


def analyze_project(
    config: AnalyzerConfig,
    progress: ProgressCallback | None = None,
) -> AnalysisResult:
    """Run the full analysis and return the graph plus the unused-file list."""
    log = get_logger(__name__, config.logger)

    project_root = config.project_root
    if not project_root.is_dir():
        raise ConfigurationError(f"Project directory does not exist: {project_root}")
    miniapp_root = config.resolved_miniapp_root
    if not miniapp_root.is_dir():
        raise ConfigurationError(f"Miniapp directory does not exist: {miniapp_root}")
    log.debug("Project root: %s, miniapp root: %s", project_root, miniapp_root)

    # Stage 1: root manifest
    manifest_path, manifest, warnings = locate_app_manifest(
        miniapp_root, config.entry_file, config.entry_content, log=log,
    )

    # Stage 2: scan
    if progress:
        progress("Scanning", 0, 1)
    files = scan_files(
        miniapp_root,
        config.file_types,
        exclude_patterns=config.exclude_patterns,
        include_assets=config.include_assets,
        skip_dirs=config.skip_dirs,
        relative_to=project_root,
    )
    if progress:
        progress("Scanning", 1, 1)

    # Stage 3: extract (parallel)
    references, extract_warnings = run_extraction(files, config.max_workers, progress, log)
    warnings.extend(extract_warnings)

    # Stage 4: assemble (sequential)
    if progress:
        progress("Building graph", 0, 1)
    aliases = merge_aliases(load_tsconfig_aliases(project_root), config.aliases)
    resolver = PathResolver(project_root, miniapp_root, aliases, log=log)
    builder = ProjectStructureBuilder(
        project_root,
        miniapp_root,
        files,
        resolver,
        manifest=manifest,
        manifest_path=manifest_path,
        implicit_files=implicit_global_files(miniapp_root),
        log=log,
    )
    structure = builder.build(references)
    warnings.extend(builder.warnings)
    if progress:
        progress("Building graph", 1, 1)

    # Stage 5: seed set
    essentials = resolve_essential_files(project_root, miniapp_root, config.essential_files, log=log)
    essentials.update(find_ambient_declaration_files(files, log=log))
    entry_ids = collect_entry_ids(structure, essentials, log=log)

    # Stage 6: reachability
    if progress:
        progress("Reachability", 0, 1)
    reachable = find_reachable(structure, entry_ids, log=log)
    unused = find_unused_files(structure, reachable, config.keep_assets, log=log)
    if progress:
        progress("Reachability", 1, 1)

    return AnalysisResult(
        structure=structure,
        unused_files=unused,
        reachable_ids=reachable,
        entry_ids=entry_ids,
        warnings=warnings,
    )
