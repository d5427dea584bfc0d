"""mp-prune: find files a WeChat mini-program never reaches."""

__version__ = "0.1.0"

from mp_prune.errors import (  # noqa: E402
    ConfigurationError,
    EntryPointError,
    ExtractionError,
    ManifestError,
    MpPruneError,
)
from mp_prune.models import AnalysisResult, AnalyzerConfig, ProjectStructure  # noqa: E402
from mp_prune.pipeline import analyze_project  # noqa: E402

__all__ = [
    "AnalysisResult",
    "AnalyzerConfig",
    "ConfigurationError",
    "EntryPointError",
    "ExtractionError",
    "ManifestError",
    "MpPruneError",
    "ProjectStructure",
    "analyze_project",
]
