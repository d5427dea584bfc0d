"""Shared extension groups and probe lists."""

from __future__ import annotations

from mp_prune.models import DependencyKind

SCRIPT_EXTENSIONS = (".js", ".ts")
WXS_EXTENSIONS = (".wxs",)
MARKUP_EXTENSIONS = (".wxml",)
STYLESHEET_EXTENSIONS = (".wxss", ".less", ".css")
MANIFEST_EXTENSIONS = (".json",)
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp")

# Sibling files that make up one page or component, in probe order
COMPONENT_EXTENSIONS = (".js", ".ts", ".wxml", ".wxss", ".less", ".json")

PROBE_EXTENSIONS: dict[DependencyKind, tuple[str, ...]] = {
    DependencyKind.PAGE: COMPONENT_EXTENSIONS,
    DependencyKind.COMPONENT: COMPONENT_EXTENSIONS,
    DependencyKind.ASSET: IMAGE_EXTENSIONS,
    DependencyKind.THEME: MANIFEST_EXTENSIONS,
    DependencyKind.CONFIG: MANIFEST_EXTENSIONS,
    DependencyKind.WORKER: SCRIPT_EXTENSIONS,
}

# Markup tags whose src may only point at one kind of file
TAG_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "import": MARKUP_EXTENSIONS,
    "include": MARKUP_EXTENSIONS,
    "wxs": WXS_EXTENSIONS,
    "image": IMAGE_EXTENSIONS,
}

DEFAULT_FILE_TYPES = ["js", "ts", "wxml", "wxss", "less", "wxs", "json"]
ASSET_FILE_TYPES = [ext.lstrip(".") for ext in IMAGE_EXTENSIONS]


def suffix_of(path_or_ref: str) -> str:
    """Lower-cased extension of a path or reference, '' when absent."""
    name = path_or_ref.rsplit("/", 1)[-1]
    if "." not in name.lstrip("."):
        return ""
    return "." + name.rsplit(".", 1)[-1].lower()


def is_image(path_or_ref: str) -> bool:
    return suffix_of(path_or_ref) in IMAGE_EXTENSIONS


def probe_extensions_for(source_suffix: str, raw_ref: str, tag: str | None = None) -> tuple[str, ...]:
    """Allowed extensions for a reference found in a non-manifest file.

    A markup tag, when known, decides on its own: ``<wxs src="x">`` probes
    only .wxs even without an extension in the reference.
    """
    if tag in TAG_EXTENSIONS:
        return TAG_EXTENSIONS[tag]
    if is_image(raw_ref):
        return IMAGE_EXTENSIONS
    if source_suffix in SCRIPT_EXTENSIONS:
        return SCRIPT_EXTENSIONS + MANIFEST_EXTENSIONS
    if source_suffix in WXS_EXTENSIONS:
        return WXS_EXTENSIONS
    if source_suffix in MARKUP_EXTENSIONS:
        if suffix_of(raw_ref) in WXS_EXTENSIONS:
            return WXS_EXTENSIONS
        return MARKUP_EXTENSIONS
    if source_suffix in STYLESHEET_EXTENSIONS:
        return STYLESHEET_EXTENSIONS
    return ()
