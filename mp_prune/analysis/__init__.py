"""Graph assembly, entry resolution and reachability."""

from mp_prune.analysis.entry_points import (
    collect_entry_ids,
    find_ambient_declaration_files,
    implicit_global_files,
    locate_app_manifest,
    resolve_essential_files,
)
from mp_prune.analysis.graph_builder import ProjectStructureBuilder
from mp_prune.analysis.reachability import find_reachable, find_unused_files

__all__ = [
    "ProjectStructureBuilder",
    "collect_entry_ids",
    "find_ambient_declaration_files",
    "find_reachable",
    "find_unused_files",
    "implicit_global_files",
    "locate_app_manifest",
    "resolve_essential_files",
]
