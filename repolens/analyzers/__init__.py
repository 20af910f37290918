"""Analyzers that turn a repository snapshot into structured facts."""

from __future__ import annotations

from .base import Analyzer
from .gaps import GapDetector, GapPattern
from .layout import LayoutAnalyzer
from .quality import QualityAnalyzer
from .requirements import ParseFailure, RequirementsExtractor

__all__ = [
    "Analyzer",
    "GapDetector",
    "GapPattern",
    "LayoutAnalyzer",
    "ParseFailure",
    "QualityAnalyzer",
    "RequirementsExtractor",
]
