"""Project structure builder: assembles the typed node/link graph.

Single-threaded: it needs the full set of scanned files before
resolving anything, and the processed-manifest set used by recursive
component discovery is shared mutable state.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from mp_prune.errors import ManifestError
from mp_prune.extractor.base import Reference
from mp_prune.extractor.manifest import ManifestExtractor
from mp_prune.filetypes import (
    COMPONENT_EXTENSIONS,
    IMAGE_EXTENSIONS,
    MANIFEST_EXTENSIONS,
    MARKUP_EXTENSIONS,
    STYLESHEET_EXTENSIONS,
    probe_extensions_for,
)
from mp_prune.log import TRACE
from mp_prune.manifest import Manifest, load_manifest
from mp_prune.models import (
    DependencyKind,
    GraphLink,
    GraphNode,
    LinkType,
    NodeType,
    ProjectStructure,
    SemanticDependency,
)
from mp_prune.resolver import PathResolver

logger = logging.getLogger(__name__)

APP_NODE_ID = "app"


def _strip_extension(path: Path) -> Path:
    name = path.name
    for ext in COMPONENT_EXTENSIONS:
        if name.endswith(ext):
            return path.with_name(name[: -len(ext)])
    return path.with_suffix("")


class ProjectStructureBuilder:
    """Build a ProjectStructure from a root manifest and the scanned files."""

    def __init__(
        self,
        project_root: Path,
        miniapp_root: Path,
        files: list[Path],
        resolver: PathResolver,
        manifest: Manifest | None = None,
        manifest_path: Path | None = None,
        implicit_files: list[Path] | None = None,
        log: logging.Logger | None = None,
    ):
        self.project_root = Path(project_root)
        self.miniapp_root = Path(miniapp_root)
        self.files = list(files)
        self.resolver = resolver
        self.manifest = manifest
        self.manifest_path = manifest_path
        self.implicit_files = list(implicit_files or [])
        self._log = log or logger
        self._manifest_extractor = ManifestExtractor(log=self._log)

        self._nodes: dict[str, GraphNode] = {}
        self._links: list[GraphLink] = []
        self._link_keys: set[tuple[str, str, LinkType]] = set()
        self._processed_manifests: set[str] = set()
        self.warnings: list[str] = []

    # ── Public API ────────────────────────────────────────────

    def build(self, references: Mapping[Path, list[Reference | str]] | None = None) -> ProjectStructure:
        """Assemble the graph.

        ``references`` maps each non-manifest file to what its extractor
        produced: (raw, tag) pairs, or bare raw strings when no tag is known.
        Files without an entry contribute no links.
        """
        # Step 1: one Module node per scanned file
        for path in self.files:
            self._add_module_node(path)
        self._log.debug("Initialized %d module node(s)", len(self._nodes))

        root_id: str | None = None
        has_manifest = self.manifest is not None
        if has_manifest or self.implicit_files:
            root_id = APP_NODE_ID
            self._add_node(GraphNode(
                id=APP_NODE_ID,
                type=NodeType.APP,
                label="App",
                properties={"path": str(self.manifest_path) if self.manifest_path else None},
            ))

        # Step 2 + 3: manifest entries and recursive component discovery
        if root_id is not None:
            if self.manifest_path is not None:
                self._link_file(root_id, self.manifest_path, LinkType.CONFIG)
                self._processed_manifests.add(str(self.manifest_path))
            if self.manifest is not None:
                self._process_app_manifest(root_id, self.manifest)
            for path in self.implicit_files:
                self._link_file(root_id, path, LinkType.STRUCTURE)

        # Step 4: per-file references
        for path, refs in (references or {}).items():
            self._link_references(path, refs)

        structure = ProjectStructure(
            nodes=list(self._nodes.values()),
            links=list(self._links),
            root_node_id=root_id,
            root_directory=self.project_root,
            miniapp_root=self.miniapp_root,
        )
        self._log.info(
            "Project structure: %d node(s), %d link(s)",
            len(structure.nodes), len(structure.links),
        )
        return structure

    # ── Manifest processing ───────────────────────────────────

    def _process_app_manifest(self, root_id: str, manifest: Manifest) -> None:
        anchor = self.manifest_path or (self.miniapp_root / "app.json")
        extractor = self._manifest_extractor

        for dep in extractor.pages(manifest):
            parent_id = root_id
            if dep.package_root:
                parent_id = self._add_package(root_id, dep.package_root)
            self._process_page(parent_id, dep, anchor)

        for dep in extractor.tab_bar(manifest):
            if dep.kind is DependencyKind.PAGE:
                self._process_page(root_id, dep, anchor)
            else:
                self._link_single(root_id, dep, anchor, LinkType.RESOURCE)

        for dep in extractor.components(manifest, anchor):
            self._process_component(root_id, dep, anchor)

        for dep in extractor.app_files(manifest):
            if dep.kind is DependencyKind.WORKER:
                self._process_worker(root_id, dep, anchor)
            else:
                self._link_single(root_id, dep, anchor, LinkType.CONFIG)

    def _add_package(self, root_id: str, package_root: str) -> str:
        package_id = f"pkg:{package_root}"
        if package_id not in self._nodes:
            self._add_node(GraphNode(
                id=package_id,
                type=NodeType.PACKAGE,
                label=package_root,
                properties={"root": str(self.miniapp_root / package_root)},
            ))
        self._add_link(root_id, package_id, LinkType.STRUCTURE)
        return package_id

    def _process_page(self, parent_id: str, dep: SemanticDependency, anchor: Path) -> None:
        page_key = dep.raw_path.lstrip("/")
        page_id = f"page:{page_key}"
        if page_id not in self._nodes:
            self._add_node(GraphNode(
                id=page_id,
                type=NodeType.PAGE,
                label=page_key,
                properties={"basePath": str(self.miniapp_root / page_key)},
            ))
        self._add_link(parent_id, page_id, LinkType.STRUCTURE)

        base = self._resolve_base(dep, anchor)
        if base is None:
            self._warn(f"Page {dep.raw_path} has no files under {self.miniapp_root}")
            return
        self._link_siblings(page_id, base)

    def _process_component(self, parent_id: str, dep: SemanticDependency, anchor: Path) -> None:
        """Add a component and recurse into its own manifest.

        The component's manifest is marked processed before recursing, so a
        cycle (A uses B uses A) visits each manifest exactly once.
        """
        base = self._resolve_base(dep, anchor)
        if base is None:
            self._log.log(TRACE, "Component %s from %s did not resolve", dep.raw_path, anchor)
            return

        component_id = f"comp:{self._relative_key(base)}"
        if component_id not in self._nodes:
            self._add_node(GraphNode(
                id=component_id,
                type=NodeType.COMPONENT,
                label=self._relative_key(base),
                properties={"basePath": str(base)},
            ))
        self._add_link(parent_id, component_id, LinkType.STRUCTURE)
        self._link_siblings(component_id, base)

    def _link_siblings(self, owner_id: str, base: Path) -> None:
        """Link every existing sibling file of a page/component base path.

        Tries ``<base>.<ext>`` first; when nothing exists there, the base is a
        directory with ``index.<ext>`` files.
        """
        linked = self._link_sibling_set(owner_id, base)
        if not linked and base.is_dir():
            self._link_sibling_set(owner_id, base / "index")

    def _link_sibling_set(self, owner_id: str, base: Path) -> bool:
        found = False
        for ext in COMPONENT_EXTENSIONS:
            path = base.with_name(base.name + ext)
            if not path.is_file():
                continue
            found = True
            link_type = LinkType.CONFIG if ext in MANIFEST_EXTENSIONS else LinkType.STRUCTURE
            self._link_file(owner_id, path, link_type)
            # The manifest is followed even when json files are not part of the scan
            if ext in MANIFEST_EXTENSIONS:
                self._process_component_manifest(owner_id, path)
        return found

    def _process_component_manifest(self, owner_id: str, manifest_path: Path) -> None:
        key = str(manifest_path)
        if key in self._processed_manifests:
            return
        self._processed_manifests.add(key)

        try:
            manifest = load_manifest(manifest_path)
        except ManifestError as e:
            self._warn(str(e))
            return

        for dep in self._manifest_extractor.components(manifest, manifest_path):
            self._process_component(owner_id, dep, manifest_path)

    def _process_worker(self, root_id: str, dep: SemanticDependency, anchor: Path) -> None:
        """Workers may name a single entry file or a directory of worker code."""
        base = self.resolver.resolve_base(dep.raw_path, anchor)
        if base is not None and base.is_dir():
            prefix = str(base) + os.sep
            hits = [node_id for node_id in list(self._nodes) if node_id.startswith(prefix)]
            for node_id in hits:
                self._add_link(root_id, node_id, LinkType.WORKER_ENTRY)
            if hits:
                return
        self._link_single(root_id, dep, anchor, LinkType.WORKER_ENTRY)

    def _link_single(
        self, source_id: str, dep: SemanticDependency, anchor: Path, link_type: LinkType,
    ) -> None:
        path = self.resolver.resolve(dep.raw_path, anchor, dep.extensions)
        if path is None:
            self._log.log(TRACE, "%s %s not found", dep.source_field, dep.raw_path)
            return
        if not self._link_file(source_id, path, link_type):
            self._log.log(TRACE, "%s %s is not a scanned file", dep.source_field, path)

    def _resolve_base(self, dep: SemanticDependency, anchor: Path) -> Path | None:
        """Resolve a page/component reference and strip it back to a base path."""
        path = self.resolver.resolve(dep.raw_path, anchor, dep.extensions)
        if path is None:
            return None
        if path.name.startswith("index.") and not dep.raw_path.rstrip("/").endswith("index"):
            # "comp/card" resolved to "comp/card/index.js": the base is the directory
            return path.parent
        return _strip_extension(path)

    # ── Per-file references ───────────────────────────────────

    def _link_references(self, source: Path, refs: list[Reference | str]) -> None:
        source_id = str(source)
        if source_id not in self._nodes:
            return
        source_suffix = source.suffix.lower()
        for ref in refs:
            raw, tag = (ref, None) if isinstance(ref, str) else ref
            allowed = probe_extensions_for(source_suffix, raw, tag)
            if not allowed:
                continue
            target = self.resolver.resolve(raw, source, allowed)
            if target is None or target == source:
                continue
            target_id = str(target)
            if target_id not in self._nodes:
                continue
            self._add_link(source_id, target_id, self._link_type(source_suffix, target))

    @staticmethod
    def _link_type(source_suffix: str, target: Path) -> LinkType:
        target_suffix = target.suffix.lower()
        if target_suffix in IMAGE_EXTENSIONS:
            return LinkType.RESOURCE
        if source_suffix in MARKUP_EXTENSIONS and target_suffix in MARKUP_EXTENSIONS:
            return LinkType.TEMPLATE
        if source_suffix in STYLESHEET_EXTENSIONS and target_suffix in STYLESHEET_EXTENSIONS:
            return LinkType.STYLE
        return LinkType.IMPORT

    # ── Node / link helpers ───────────────────────────────────

    def _relative_key(self, path: Path) -> str:
        try:
            return path.relative_to(self.miniapp_root).as_posix()
        except ValueError:
            return path.as_posix()

    def _add_module_node(self, path: Path) -> GraphNode:
        node_id = str(path)
        existing = self._nodes.get(node_id)
        if existing is not None:
            return existing
        try:
            label = path.relative_to(self.project_root).as_posix()
        except ValueError:
            label = path.as_posix()
        return self._add_node(GraphNode(
            id=node_id,
            type=NodeType.MODULE,
            label=label,
            properties={"absolutePath": node_id, "ext": path.suffix.lower().lstrip(".")},
        ))

    def _add_node(self, node: GraphNode) -> GraphNode:
        if node.id not in self._nodes:
            self._nodes[node.id] = node
        return self._nodes[node.id]

    def _link_file(self, source_id: str, path: Path, link_type: LinkType) -> bool:
        """Link to a scanned file; files outside the scan are not added."""
        if str(path) not in self._nodes:
            return False
        self._add_link(source_id, str(path), link_type)
        return True

    def _add_link(self, source_id: str, target_id: str, link_type: LinkType) -> None:
        if source_id not in self._nodes or target_id not in self._nodes:
            self._log.log(TRACE, "Dropping dangling link %s -> %s", source_id, target_id)
            return
        key = (source_id, target_id, link_type)
        if key in self._link_keys:
            return
        self._link_keys.add(key)
        self._links.append(GraphLink(source=source_id, target=target_id, type=link_type))

    def _warn(self, message: str) -> None:
        self.warnings.append(message)
        self._log.warning(message)
