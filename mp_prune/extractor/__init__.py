"""Extractor registry and dispatcher."""

from __future__ import annotations

from pathlib import Path

from mp_prune.extractor.base import BaseExtractor, Reference
from mp_prune.extractor.manifest import ManifestExtractor, is_plugin_reference
from mp_prune.extractor.markup import MarkupExtractor
from mp_prune.extractor.script import ScriptExtractor, is_ambient_declaration
from mp_prune.extractor.stylesheet import StylesheetExtractor

_EXTRACTORS: list[BaseExtractor] = [
    ScriptExtractor(),
    MarkupExtractor(),
    StylesheetExtractor(),
]

_BY_SUFFIX: dict[str, BaseExtractor] = {
    ext: extractor for extractor in _EXTRACTORS for ext in extractor.extensions
}


def extractor_for(file_path: Path) -> BaseExtractor | None:
    """The extractor for a file's suffix; None for manifests, images and unknown types."""
    return _BY_SUFFIX.get(file_path.suffix.lower())


def extract_references(file_path: Path, content: str) -> list[str]:
    """Raw outgoing references of one non-manifest file."""
    extractor = extractor_for(file_path)
    if extractor is None:
        return []
    return extractor.extract(content, file_path)


def extract_tagged_references(file_path: Path, content: str) -> list[Reference]:
    """Raw references paired with the markup tag they came from, if any."""
    extractor = extractor_for(file_path)
    if extractor is None:
        return []
    return extractor.extract_tagged(content, file_path)


__all__ = [
    "BaseExtractor",
    "ManifestExtractor",
    "MarkupExtractor",
    "Reference",
    "ScriptExtractor",
    "StylesheetExtractor",
    "extract_references",
    "extract_tagged_references",
    "extractor_for",
    "is_ambient_declaration",
    "is_plugin_reference",
]
