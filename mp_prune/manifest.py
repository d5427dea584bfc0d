"""Typed models for app.json and page/component json manifests.

Fields default to empty collections so callers never branch on whether a
key was present in the raw JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from mp_prune.errors import ManifestError


def _strings_only(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


class _ManifestModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SubPackage(_ManifestModel):
    root: str = ""
    pages: list[str] = Field(default_factory=list)

    @field_validator("pages", mode="before")
    @classmethod
    def _pages(cls, value: Any) -> list[str]:
        return _strings_only(value)


class TabBarItem(_ManifestModel):
    page_path: str | None = Field(default=None, alias="pagePath")
    icon_path: str | None = Field(default=None, alias="iconPath")
    selected_icon_path: str | None = Field(default=None, alias="selectedIconPath")


class TabBar(_ManifestModel):
    custom: bool = False
    items: list[TabBarItem] = Field(default_factory=list, alias="list")

    @field_validator("items", mode="before")
    @classmethod
    def _items(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [v for v in value if isinstance(v, dict)]


class ComponentGeneric(_ManifestModel):
    default: str | None = None


class Manifest(_ManifestModel):
    """app.json, or the json file of a page or component."""
    pages: list[str] = Field(default_factory=list)
    subpackages: list[SubPackage] = Field(default_factory=list, alias="subPackages")
    tab_bar: TabBar | None = Field(default=None, alias="tabBar")
    using_components: dict[str, str] = Field(default_factory=dict, alias="usingComponents")
    component_generics: dict[str, ComponentGeneric] = Field(
        default_factory=dict, alias="componentGenerics",
    )
    theme_location: str | None = Field(default=None, alias="themeLocation")
    workers: str | None = None
    sitemap_location: str | None = Field(default=None, alias="sitemapLocation")
    component: bool = False

    @field_validator("pages", mode="before")
    @classmethod
    def _pages(cls, value: Any) -> list[str]:
        return _strings_only(value)

    @field_validator("subpackages", mode="before")
    @classmethod
    def _subpackages(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [v for v in value if isinstance(v, dict) and isinstance(v.get("root"), str)]

    @field_validator("using_components", mode="before")
    @classmethod
    def _using_components(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {k: v for k, v in value.items() if isinstance(v, str)}

    @field_validator("component_generics", mode="before")
    @classmethod
    def _generics(cls, value: Any) -> dict:
        if not isinstance(value, dict):
            return {}
        return {k: v for k, v in value.items() if isinstance(v, dict)}

    @field_validator("workers", mode="before")
    @classmethod
    def _workers(cls, value: Any) -> str | None:
        # "workers": "workers" or "workers": {"path": "workers", "isSubpackage": true}
        if isinstance(value, dict):
            value = value.get("path")
        return value if isinstance(value, str) else None

    @field_validator("tab_bar", "theme_location", "sitemap_location", mode="before")
    @classmethod
    def _drop_wrong_type(cls, value: Any, info: ValidationInfo) -> Any:
        if info.field_name == "tab_bar":
            return value if isinstance(value, dict) else None
        return value if isinstance(value, str) else None


def parse_manifest(data: Any, path: Path | None = None) -> Manifest:
    """Validate already-decoded JSON content."""
    if data is None:
        return Manifest()
    if not isinstance(data, dict):
        raise ManifestError(f"manifest root must be an object, got {type(data).__name__}", path)
    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(f"invalid manifest: {e}", path) from e


def load_manifest(path: Path) -> Manifest:
    """Read and validate a manifest file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"cannot read {path}: {e}", path) from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(f"invalid JSON in {path}: {e}", path) from e
    return parse_manifest(data, path)
