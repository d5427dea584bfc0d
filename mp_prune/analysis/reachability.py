"""Reachability sweep and unused-file computation."""

from __future__ import annotations

import logging
from collections import deque
from pathlib import Path
from typing import Iterable

from mp_prune.models import ProjectStructure
from mp_prune.scanner import matches_any

logger = logging.getLogger(__name__)


def find_reachable(
    structure: ProjectStructure,
    entry_ids: Iterable[str],
    log: logging.Logger | None = None,
) -> set[str]:
    """Multi-source BFS over every link type."""
    log = log or logger
    node_ids = structure.node_ids()
    forward = structure.outgoing()

    reachable: set[str] = set()
    queue: deque[str] = deque()
    for entry in entry_ids:
        if entry in node_ids and entry not in reachable:
            reachable.add(entry)
            queue.append(entry)
        elif entry not in node_ids:
            log.warning("Entry %s is not a node of the graph", entry)

    while queue:
        current = queue.popleft()
        for neighbor in forward.get(current, []):
            if neighbor in node_ids and neighbor not in reachable:
                reachable.add(neighbor)
                queue.append(neighbor)

    log.debug("Reachability: %d of %d node(s) reachable", len(reachable), len(node_ids))
    return reachable


def find_unused_files(
    structure: ProjectStructure,
    reachable: set[str],
    keep_patterns: Iterable[str] = (),
    log: logging.Logger | None = None,
) -> list[Path]:
    """Module nodes not reached, minus keep-pattern matches, sorted."""
    log = log or logger
    patterns = list(keep_patterns)
    root = Path(structure.root_directory)

    unused: list[Path] = []
    for node in structure.module_nodes():
        if node.id in reachable:
            continue
        path = Path(node.properties.get("absolutePath", node.id))
        if patterns:
            try:
                rel = path.relative_to(root).as_posix()
            except ValueError:
                rel = path.as_posix()
            if matches_any(rel, patterns):
                log.debug("Keeping %s (matches keep pattern)", rel)
                continue
        unused.append(path)

    unused.sort()
    log.info("Unused files found: %d", len(unused))
    return unused
