"""Manifest extractor: typed dependencies declared by app.json and component json."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path

from mp_prune.filetypes import PROBE_EXTENSIONS
from mp_prune.log import TRACE
from mp_prune.manifest import Manifest
from mp_prune.models import DependencyKind, SemanticDependency

logger = logging.getLogger(__name__)

# Host-provided components with no local source
PLUGIN_PREFIXES = ("plugin://", "plugin-private://")

DEFAULT_THEME = "theme.json"


def is_plugin_reference(path: str) -> bool:
    return path.startswith(PLUGIN_PREFIXES)


def _dep(kind: DependencyKind, raw_path: str, source_field: str, **kwargs) -> SemanticDependency:
    return SemanticDependency(
        kind=kind,
        raw_path=raw_path,
        extensions=PROBE_EXTENSIONS[kind],
        source_field=source_field,
        **kwargs,
    )


def _root_relative(path: str) -> str:
    return "/" + path.lstrip("/")


class ManifestExtractor:
    """Emits SemanticDependency items for one parsed manifest.

    Page paths are made root-relative (``/pages/index/index``); component
    paths are kept as written so the caller can resolve them against the
    defining manifest's directory.
    """

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def extract(self, manifest: Manifest, file_path: Path | None = None) -> list[SemanticDependency]:
        deps: list[SemanticDependency] = []
        deps.extend(self.pages(manifest))
        deps.extend(self.tab_bar(manifest))
        deps.extend(self.components(manifest, file_path))
        deps.extend(self.app_files(manifest))
        return deps

    def pages(self, manifest: Manifest) -> list[SemanticDependency]:
        deps = [_dep(DependencyKind.PAGE, _root_relative(p), "pages") for p in manifest.pages]
        for pkg in manifest.subpackages:
            if not pkg.root:
                continue
            for page in pkg.pages:
                full = posixpath.join(pkg.root.strip("/"), page.lstrip("/"))
                deps.append(_dep(
                    DependencyKind.PAGE, _root_relative(full), "subpackages.pages",
                    package_root=pkg.root.strip("/"),
                ))
        return deps

    def tab_bar(self, manifest: Manifest) -> list[SemanticDependency]:
        if manifest.tab_bar is None:
            return []
        deps: list[SemanticDependency] = []
        for item in manifest.tab_bar.items:
            if item.page_path:
                deps.append(_dep(DependencyKind.PAGE, _root_relative(item.page_path), "tabBar.list.pagePath"))
            if item.icon_path:
                deps.append(_dep(DependencyKind.ASSET, _root_relative(item.icon_path), "tabBar.list.iconPath"))
            if item.selected_icon_path:
                deps.append(_dep(
                    DependencyKind.ASSET, _root_relative(item.selected_icon_path),
                    "tabBar.list.selectedIconPath",
                ))
        return deps

    def components(self, manifest: Manifest, file_path: Path | None = None) -> list[SemanticDependency]:
        deps: list[SemanticDependency] = []
        for name, path in manifest.using_components.items():
            if is_plugin_reference(path):
                self._log.log(TRACE, "Plugin component %s=%s in %s has no local source", name, path, file_path)
                continue
            deps.append(_dep(DependencyKind.COMPONENT, path, "usingComponents"))
        for name, generic in manifest.component_generics.items():
            if not generic.default:
                continue
            if is_plugin_reference(generic.default):
                self._log.log(TRACE, "Plugin generic default %s=%s in %s", name, generic.default, file_path)
                continue
            deps.append(_dep(DependencyKind.COMPONENT, generic.default, "componentGenerics.default"))
        return deps

    def app_files(self, manifest: Manifest) -> list[SemanticDependency]:
        """Theme, sitemap and worker entries; only meaningful for app.json."""
        deps: list[SemanticDependency] = []
        if manifest.theme_location:
            deps.append(_dep(DependencyKind.THEME, _root_relative(manifest.theme_location), "themeLocation"))
        deps.append(_dep(DependencyKind.THEME, _root_relative(DEFAULT_THEME), "themeLocation"))
        if manifest.sitemap_location:
            deps.append(_dep(DependencyKind.CONFIG, _root_relative(manifest.sitemap_location), "sitemapLocation"))
        if manifest.workers:
            deps.append(_dep(DependencyKind.WORKER, _root_relative(manifest.workers), "workers"))
        return deps
