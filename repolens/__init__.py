"""repolens: repository classification and intent-driven context selection."""

from .context import ContextSelector, parse_intent
from .models import ContextSelection, RepoAnalysis, RepoClassification
from .orchestrator import ContextOptions, Orchestrator
from .repo_scanner import RepoScanner, ScanIOError

__version__ = "0.1.0"

__all__ = [
    "ContextOptions",
    "ContextSelection",
    "ContextSelector",
    "Orchestrator",
    "RepoAnalysis",
    "RepoClassification",
    "RepoScanner",
    "ScanIOError",
    "parse_intent",
]
