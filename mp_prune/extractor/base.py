"""Abstract base extractor."""

from __future__ import annotations

import abc
from pathlib import Path
from typing import Optional

from mp_prune.resolver import is_unresolvable_reference

# (raw reference, tag or None). Markup tags narrow the extensions a reference
# may resolve to; other formats carry no tag.
Reference = tuple[str, Optional[str]]


class BaseExtractor(abc.ABC):
    """Base class for format-specific reference extractors.

    Extractors only read text. Turning a raw reference into a path is the
    resolver's job, so every extractor can be tested with literal strings.
    """

    extensions: tuple[str, ...]

    @abc.abstractmethod
    def extract(self, content: str, file_path: Path) -> list[str]:
        """Return the raw outgoing references found in content."""

    def extract_tagged(self, content: str, file_path: Path) -> list[Reference]:
        return [(ref, None) for ref in self.extract(content, file_path)]

    @staticmethod
    def _collect(refs: list[str]) -> list[str]:
        """Drop unresolvable references and duplicates, keeping first-seen order."""
        seen: set[str] = set()
        result: list[str] = []
        for ref in refs:
            ref = ref.strip()
            if not ref or is_unresolvable_reference(ref) or ref in seen:
                continue
            seen.add(ref)
            result.append(ref)
        return result

    @staticmethod
    def _collect_tagged(refs: list[Reference]) -> list[Reference]:
        seen: set[Reference] = set()
        result: list[Reference] = []
        for ref, tag in refs:
            ref = ref.strip()
            if not ref or is_unresolvable_reference(ref) or (ref, tag) in seen:
                continue
            seen.add((ref, tag))
            result.append((ref, tag))
        return result
