"""Resolve raw reference strings to files on disk."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Iterable, Mapping

from mp_prune.log import TRACE

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{\{.*?\}\}", re.DOTALL)
_REMOTE_RE = re.compile(r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*:)?//")


def is_unresolvable_reference(raw_ref: str) -> bool:
    """True for template placeholders, data URIs and remote URLs."""
    ref = raw_ref.strip()
    if not ref:
        return True
    if _PLACEHOLDER_RE.search(ref):
        return True
    lowered = ref.lower()
    if lowered.startswith("data:"):
        return True
    if lowered.startswith(("http:", "https:")) or _REMOTE_RE.match(ref):
        return True
    return False


def _normalize(path: Path) -> Path:
    return Path(os.path.normpath(path))


class PathResolver:
    """Turns a reference found in some file into an absolute file path.

    Rules, in order: skip unresolvable references; alias table (longest
    alias first); ``/x`` relative to the miniapp root; ``./x``, ``../x`` and
    bare ``x`` relative to the referencing file's directory. Each candidate
    is probed as-is, then with every allowed extension, then as a directory
    holding ``index`` + extension.
    """

    def __init__(
        self,
        project_root: Path,
        miniapp_root: Path | None = None,
        aliases: Mapping[str, Iterable[str] | str] | None = None,
        log: logging.Logger | None = None,
    ):
        self.project_root = _normalize(Path(project_root).resolve())
        self.miniapp_root = _normalize(
            Path(miniapp_root).resolve() if miniapp_root else self.project_root
        )
        self._log = log or logger
        self.aliases: dict[str, list[Path]] = {}
        for alias, targets in (aliases or {}).items():
            if isinstance(targets, str):
                targets = [targets]
            alias = alias.rstrip("/")
            if not alias:
                continue
            self.aliases[alias] = [self._anchor(t) for t in targets]
        # Longest prefix wins
        self._alias_order = sorted(self.aliases, key=len, reverse=True)

    def _anchor(self, target: str) -> Path:
        target_path = Path(target.rstrip("/").removesuffix("/*"))
        if target_path.is_absolute():
            return _normalize(target_path)
        return _normalize(self.project_root / target_path)

    def resolve(
        self,
        raw_ref: str,
        from_file: Path,
        allowed_extensions: Iterable[str],
    ) -> Path | None:
        if is_unresolvable_reference(raw_ref):
            self._log.log(TRACE, "Skipping unresolvable reference %r in %s", raw_ref, from_file)
            return None

        ref = raw_ref.strip()
        extensions = tuple(allowed_extensions)

        for base in self._candidates(ref, Path(from_file)):
            found = self._probe(base, extensions)
            if found is not None:
                self._log.log(TRACE, "Resolved %r from %s -> %s", raw_ref, from_file, found)
                return found

        self._log.log(TRACE, "Could not resolve %r from %s", raw_ref, from_file)
        return None

    def resolve_base(self, raw_ref: str, from_file: Path) -> Path | None:
        """The first candidate base path for raw_ref, without probing the disk."""
        if is_unresolvable_reference(raw_ref):
            return None
        for base in self._candidates(raw_ref.strip(), Path(from_file)):
            return base
        return None

    def _candidates(self, ref: str, from_file: Path) -> list[Path]:
        candidates: list[Path] = []

        alias_hit = self._match_alias(ref)
        if alias_hit is not None:
            alias, remainder = alias_hit
            for target in self.aliases[alias]:
                candidates.append(_normalize(target / remainder) if remainder else target)

        if ref.startswith("/"):
            candidates.append(_normalize(self.miniapp_root / ref.lstrip("/")))
        elif alias_hit is None:
            # "./x", "../x" and bare "x" all resolve against the referencing file
            candidates.append(_normalize(from_file.parent / ref))
        return candidates

    def _match_alias(self, ref: str) -> tuple[str, str] | None:
        for alias in self._alias_order:
            if ref == alias:
                return alias, ""
            if ref.startswith(alias + "/"):
                return alias, ref[len(alias) + 1:]
        return None

    @staticmethod
    def _probe(base: Path, extensions: tuple[str, ...]) -> Path | None:
        if base.is_file():
            return base
        if not base.is_dir():
            for ext in extensions:
                candidate = base.with_name(base.name + ext)
                if candidate.is_file():
                    return candidate
        for ext in extensions:
            candidate = base / f"index{ext}"
            if candidate.is_file():
                return candidate
        return None


# ── Alias loading ─────────────────────────────────────────────


def load_tsconfig_aliases(project_root: Path) -> dict[str, list[str]]:
    """Read ``compilerOptions.paths`` from tsconfig.json as absolute targets."""
    tsconfig = Path(project_root) / "tsconfig.json"
    if not tsconfig.is_file():
        return {}
    try:
        data = json.loads(tsconfig.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Cannot read aliases from %s: %s", tsconfig, e)
        return {}

    options = data.get("compilerOptions") if isinstance(data, dict) else None
    if not isinstance(options, dict) or not isinstance(options.get("paths"), dict):
        return {}

    base_dir = (tsconfig.parent / str(options.get("baseUrl") or ".")).resolve()
    aliases: dict[str, list[str]] = {}
    for alias, targets in options["paths"].items():
        if not isinstance(targets, list):
            continue
        key = alias.removesuffix("/*")
        aliases[key] = [
            str(_normalize(base_dir / t.removesuffix("/*")))
            for t in targets if isinstance(t, str)
        ]
    return aliases


def merge_aliases(
    *sources: Mapping[str, Iterable[str] | str] | None,
) -> dict[str, list[str]]:
    """Merge alias tables; later sources override earlier ones per key."""
    merged: dict[str, list[str]] = {}
    for source in sources:
        for alias, targets in (source or {}).items():
            merged[alias] = [targets] if isinstance(targets, str) else list(targets)
    return merged
