"""Data models for the mp-prune analysis pipeline."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class NodeType(enum.Enum):
    APP = "App"
    PACKAGE = "Package"
    PAGE = "Page"
    COMPONENT = "Component"
    MODULE = "Module"


class LinkType(enum.Enum):
    STRUCTURE = "Structure"
    IMPORT = "Import"
    STYLE = "Style"
    TEMPLATE = "Template"
    CONFIG = "Config"
    RESOURCE = "Resource"
    WORKER_ENTRY = "WorkerEntry"


class DependencyKind(enum.Enum):
    PAGE = "page"
    COMPONENT = "component"
    ASSET = "asset"
    THEME = "theme"
    WORKER = "worker"
    CONFIG = "config"


@dataclass
class GraphNode:
    id: str
    type: NodeType
    label: str
    properties: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "label": self.label,
            "properties": dict(self.properties),
        }


@dataclass
class GraphLink:
    source: str
    target: str
    type: LinkType
    properties: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
            "properties": dict(self.properties),
        }


@dataclass
class ProjectStructure:
    """The typed node/link graph produced by one analysis run."""
    nodes: list[GraphNode] = field(default_factory=list)
    links: list[GraphLink] = field(default_factory=list)
    root_node_id: str | None = None
    root_directory: Path = field(default_factory=lambda: Path("."))
    miniapp_root: Path = field(default_factory=lambda: Path("."))

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def module_nodes(self) -> list[GraphNode]:
        return [n for n in self.nodes if n.type is NodeType.MODULE]

    def outgoing(self) -> dict[str, list[str]]:
        """Adjacency map: source id -> [target ids]."""
        forward: dict[str, list[str]] = {}
        for link in self.links:
            forward.setdefault(link.source, []).append(link.target)
        return forward

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [l.to_dict() for l in self.links],
            "rootNodeId": self.root_node_id,
            "rootDirectory": str(self.root_directory),
            "miniappRoot": str(self.miniapp_root),
        }


@dataclass(frozen=True)
class SemanticDependency:
    """A manifest reference with known intent, not yet resolved."""
    kind: DependencyKind
    raw_path: str
    extensions: tuple[str, ...] = ()
    source_field: str = ""  # e.g. "pages", "tabBar.list.iconPath"
    package_root: str | None = None  # set for subpackage pages


@dataclass
class AnalyzerConfig:
    """Inputs for one analysis run."""
    root_dir: Path = field(default_factory=lambda: Path("."))
    miniapp_root: Path | None = None  # relative to root_dir, or absolute
    entry_file: str | None = None
    entry_content: dict | None = None
    file_types: list[str] = field(default_factory=lambda: [
        "js", "ts", "wxml", "wxss", "less", "wxs", "json",
    ])
    exclude_patterns: list[str] = field(default_factory=list)
    essential_files: list[str] = field(default_factory=list)
    keep_assets: list[str] = field(default_factory=list)
    include_assets: bool = False
    aliases: dict[str, list[str]] = field(default_factory=dict)
    max_workers: int | None = None
    skip_dirs: list[str] = field(default_factory=lambda: [
        "node_modules", "miniprogram_npm", ".git", "__pycache__",
        "dist", "build", "coverage", ".idea", ".vscode",
    ])
    logger: logging.Logger | None = None

    @property
    def project_root(self) -> Path:
        return Path(self.root_dir).resolve()

    @property
    def resolved_miniapp_root(self) -> Path:
        if self.miniapp_root is None:
            return self.project_root
        return (self.project_root / self.miniapp_root).resolve()


@dataclass
class AnalysisResult:
    """Result of analyze_project."""
    structure: ProjectStructure
    unused_files: list[Path] = field(default_factory=list)
    reachable_ids: set[str] = field(default_factory=set)
    entry_ids: set[str] = field(default_factory=set)
    warnings: list[str] = field(default_factory=list)
