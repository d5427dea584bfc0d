"""Config-file loading and merging with command-line overrides."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from mp_prune.errors import ConfigurationError
from mp_prune.models import AnalyzerConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = (
    "mp-prune.config.json",
    "mp-prune.config.yaml",
    "mp-prune.config.yml",
)


class ConfigFile(BaseModel):
    """Contents of an mp-prune.config.* file. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    miniapp_root: Optional[str] = Field(default=None, alias="miniappRoot")
    entry_file: Optional[str] = Field(default=None, alias="entryFile")
    types: Optional[list[str]] = None
    exclude: list[str] = Field(default_factory=list)
    essential_files: list[str] = Field(default_factory=list, alias="essentialFiles")
    keep_assets: list[str] = Field(default_factory=list, alias="keepAssets")
    include_assets: Optional[bool] = Field(default=None, alias="includeAssets")
    aliases: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("types", mode="before")
    @classmethod
    def _types_from_string(cls, value: Any) -> Any:
        # "js,ts,wxml" is accepted as well as a list
        if isinstance(value, str):
            return _split_types(value)
        return value

    @field_validator("aliases", mode="before")
    @classmethod
    def _listify_aliases(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: [v] if isinstance(v, str) else v for k, v in value.items()}
        return value


def _split_types(value: str) -> list[str]:
    return [t.strip().lstrip(".") for t in value.split(",") if t.strip()]


def find_config_file(root: Path) -> Path | None:
    """First mp-prune.config.{json,yaml,yml} in root, or None."""
    for name in CONFIG_FILE_NAMES:
        candidate = Path(root) / name
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: Path) -> ConfigFile:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Malformed config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    try:
        config = ConfigFile.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e
    logger.debug("Loaded config file %s", path)
    return config


def build_config(
    root: Path,
    file_config: ConfigFile | None = None,
    *,
    miniapp_root: str | None = None,
    entry_file: str | None = None,
    types: str | list[str] | None = None,
    exclude: list[str] | tuple[str, ...] = (),
    essential_files: list[str] | tuple[str, ...] = (),
    keep_assets: list[str] | tuple[str, ...] = (),
    include_assets: bool | None = None,
    max_workers: int | None = None,
    logger: logging.Logger | None = None,
) -> AnalyzerConfig:
    """Merge defaults < config file < command-line values.

    Scalars from the command line replace file values; pattern lists are
    concatenated with the file's.
    """
    fc = file_config or ConfigFile()
    config = AnalyzerConfig(root_dir=Path(root), logger=logger, max_workers=max_workers)

    chosen_root = miniapp_root or fc.miniapp_root
    if chosen_root:
        config.miniapp_root = Path(chosen_root)
    config.entry_file = entry_file or fc.entry_file

    if isinstance(types, str):
        types = _split_types(types)
    if types:
        config.file_types = list(types)
    elif fc.types:
        config.file_types = list(fc.types)

    config.exclude_patterns = [*fc.exclude, *exclude]
    config.essential_files = [*fc.essential_files, *essential_files]
    config.keep_assets = [*fc.keep_assets, *keep_assets]
    if include_assets is not None:
        config.include_assets = include_assets
    elif fc.include_assets is not None:
        config.include_assets = fc.include_assets
    config.aliases = dict(fc.aliases)
    return config
