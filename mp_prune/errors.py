"""Exception taxonomy.

Only ConfigurationError and EntryPointError escape analyze_project; the
others are caught, logged and recorded as warnings on the result.
"""

from __future__ import annotations

from pathlib import Path


class MpPruneError(Exception):
    """Base class for errors raised by mp-prune."""


class ConfigurationError(MpPruneError):
    """Project or miniapp directory missing, or an unusable config file."""


class ManifestError(MpPruneError):
    """Root or component manifest missing or unparsable."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class EntryPointError(MpPruneError):
    """No entry or essential node found to start the reachability sweep."""


class ExtractionError(MpPruneError):
    """A single file could not be parsed for references."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
