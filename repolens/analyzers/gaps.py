"""Detects markers of unfinished work in source files.

Each detector family is a table of ``GapPattern`` rows. Every line of every
scanned file is tested against every row, so one line can yield several gaps.
These are heuristics over raw text: false positives are expected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from .base import Analyzer
from .utils import TEST_SOURCE_IGNORE
from ..logging import get_logger
from ..models import FileRecord, Gap, GapKind, Priority, RepoSnapshot

SOURCE_GLOBS: Tuple[str, ...] = ("**/*.{js,jsx,ts,tsx}", "**/*.{py,java,go}")

DEFAULT_SHORT_FILE_THRESHOLD = 10


@dataclass(frozen=True)
class GapPattern:
    """One marker: a regex and what a hit means.

    When ``description`` is None the regex's ``text`` group is used instead.
    """

    kind: GapKind
    regex: Pattern[str]
    priority: Priority
    description: Optional[str] = None

    def describe(self, match: "re.Match[str]") -> str:
        if self.description is not None:
            return self.description
        return match.group("text").strip()


def _p(expression: str, flags: int = 0) -> Pattern[str]:
    return re.compile(expression, flags)


MARKER_PATTERNS: Tuple[GapPattern, ...] = (
    GapPattern(
        GapKind.TODO,
        _p(r"(?://|#)\s*FIXME:?\s*(?P<text>.+)", re.IGNORECASE),
        Priority.HIGH,
    ),
    GapPattern(
        GapKind.TODO,
        _p(r"(?://|#)\s*(?:TODO|HACK|XXX|NOTE|OPTIMIZE|REFACTOR):?\s*(?P<text>.+)", re.IGNORECASE),
        Priority.MEDIUM,
    ),
)

_STUB = "Empty or stub function implementation"
STUB_PATTERNS: Tuple[GapPattern, ...] = (
    GapPattern(GapKind.STUB, _p(r"function\s+\w+\s*\([^)]*\)\s*{\s*}"), Priority.HIGH, _STUB),
    GapPattern(GapKind.STUB, _p(r"const\s+\w+\s*=\s*\([^)]*\)\s*=>\s*{\s*}"), Priority.HIGH, _STUB),
    GapPattern(
        GapKind.STUB,
        _p(r"\w+\s*\([^)]*\)\s*{\s*throw\s+new\s+Error\(['\"]Not implemented"),
        Priority.HIGH,
        _STUB,
    ),
    GapPattern(GapKind.STUB, _p(r"return\s+null\s*;?\s*}\s*$"), Priority.HIGH, _STUB),
    GapPattern(GapKind.STUB, _p(r"return\s+undefined\s*;?\s*}\s*$"), Priority.HIGH, _STUB),
    GapPattern(
        GapKind.STUB,
        _p(r"console\.(?:log|warn|error)\(['\"]Not implemented"),
        Priority.HIGH,
        _STUB,
    ),
    GapPattern(GapKind.STUB, _p(r"raise\s+NotImplementedError"), Priority.HIGH, _STUB),
    GapPattern(GapKind.STUB, _p(r"^\s*def\s+\w+\s*\(.*\)\s*(?:->\s*[^:]+)?:\s*pass\s*$"), Priority.HIGH, _STUB),
)

_MOCK = "Mock or hardcoded data detected"
MOCK_PATTERNS: Tuple[GapPattern, ...] = (
    GapPattern(GapKind.MOCK, _p(r"const\s+\w*mock\w*", re.IGNORECASE), Priority.MEDIUM, _MOCK),
    GapPattern(GapKind.MOCK, _p(r"const\s+\w*dummy\w*", re.IGNORECASE), Priority.MEDIUM, _MOCK),
    GapPattern(GapKind.MOCK, _p(r"const\s+\w*fake\w*", re.IGNORECASE), Priority.MEDIUM, _MOCK),
    GapPattern(GapKind.MOCK, _p(r"const\s+\w*test\w*\s*=\s*[\[{]", re.IGNORECASE), Priority.MEDIUM, _MOCK),
    GapPattern(GapKind.MOCK, _p(r"return\s+[\[{].*hardcoded", re.IGNORECASE), Priority.MEDIUM, _MOCK),
    GapPattern(GapKind.MOCK, _p(r"(?://|#)\s*Replace with real data", re.IGNORECASE), Priority.MEDIUM, _MOCK),
    GapPattern(GapKind.MOCK, _p(r"(?://|#)\s*Mock data", re.IGNORECASE), Priority.MEDIUM, _MOCK),
)

_PLACEHOLDER = "Placeholder content detected"
PLACEHOLDER_PATTERNS: Tuple[GapPattern, ...] = (
    GapPattern(GapKind.PLACEHOLDER, _p(r"Lorem\s+ipsum", re.IGNORECASE), Priority.LOW, _PLACEHOLDER),
    GapPattern(GapKind.PLACEHOLDER, _p(r"placeholder", re.IGNORECASE), Priority.LOW, _PLACEHOLDER),
    GapPattern(GapKind.PLACEHOLDER, _p(r"coming\s+soon", re.IGNORECASE), Priority.LOW, _PLACEHOLDER),
    GapPattern(GapKind.PLACEHOLDER, _p(r"under\s+construction", re.IGNORECASE), Priority.LOW, _PLACEHOLDER),
    GapPattern(GapKind.PLACEHOLDER, _p(r"work\s+in\s+progress", re.IGNORECASE), Priority.LOW, _PLACEHOLDER),
    GapPattern(GapKind.PLACEHOLDER, _p(r"\bWIP\b"), Priority.LOW, _PLACEHOLDER),
    GapPattern(GapKind.PLACEHOLDER, _p(r"<p>Text</p>"), Priority.LOW, _PLACEHOLDER),
    GapPattern(GapKind.PLACEHOLDER, _p(r"<div>Content</div>"), Priority.LOW, _PLACEHOLDER),
)

INCOMPLETE_PATTERNS: Tuple[GapPattern, ...] = (
    GapPattern(
        GapKind.INCOMPLETE,
        _p(r"^\s*(?://|#)\s*\.\.\."),
        Priority.HIGH,
        "Ellipsis comment indicating more code needed",
    ),
    GapPattern(
        GapKind.INCOMPLETE,
        _p(r"throw\s+new\s+Error\(['\"]Not yet implemented", re.IGNORECASE),
        Priority.HIGH,
        "Not yet implemented error",
    ),
    GapPattern(
        GapKind.INCOMPLETE,
        _p(r"alert\(['\"]Not implemented", re.IGNORECASE),
        Priority.HIGH,
        "Alert indicating missing implementation",
    ),
    GapPattern(
        GapKind.INCOMPLETE,
        _p(r"console\.\w+\(['\"]TODO:", re.IGNORECASE),
        Priority.HIGH,
        "Console log with TODO",
    ),
    GapPattern(
        GapKind.INCOMPLETE,
        _p(r"return\s+Promise\.resolve\(\)"),
        Priority.HIGH,
        "Empty promise resolution",
    ),
    GapPattern(
        GapKind.INCOMPLETE,
        _p(r"catch\s*\([^)]*\)\s*{\s*}"),
        Priority.HIGH,
        "Empty catch block",
    ),
    GapPattern(
        GapKind.INCOMPLETE,
        _p(r"^\s*except\b[^:]*:\s*pass\s*$"),
        Priority.HIGH,
        "Empty except block",
    ),
)

DEFAULT_PATTERN_FAMILIES: Dict[str, Tuple[GapPattern, ...]] = {
    "markers": MARKER_PATTERNS,
    "stubs": STUB_PATTERNS,
    "mock": MOCK_PATTERNS,
    "placeholders": PLACEHOLDER_PATTERNS,
    "incomplete": INCOMPLETE_PATTERNS,
}

logger = get_logger("analyzers.gaps")


class GapDetector(Analyzer[List[Gap]]):
    """Scans source text for TODOs, stubs, mock data and placeholders."""

    name = "gaps"

    def __init__(
        self,
        *,
        short_file_threshold: int = DEFAULT_SHORT_FILE_THRESHOLD,
        families: Dict[str, Sequence[GapPattern]] | None = None,
    ) -> None:
        self.short_file_threshold = short_file_threshold
        chosen = families if families is not None else DEFAULT_PATTERN_FAMILIES
        self._patterns: List[GapPattern] = [
            pattern for family in chosen.values() for pattern in family
        ]

    def analyze(self, snapshot: RepoSnapshot) -> List[Gap]:
        gaps: List[Gap] = []
        for record in snapshot.match(SOURCE_GLOBS, ignore=TEST_SOURCE_IGNORE):
            gaps.extend(self.scan_file(record))
        logger.debug("Detected %d gaps", len(gaps))
        return gaps

    def scan_file(self, record: FileRecord) -> List[Gap]:
        lines = record.content.split("\n")
        gaps: List[Gap] = []
        for number, line in enumerate(lines, start=1):
            for pattern in self._patterns:
                match = pattern.regex.search(line)
                if match is None:
                    continue
                gaps.append(
                    Gap(
                        kind=pattern.kind,
                        file_path=record.path,
                        line_number=number,
                        description=pattern.describe(match),
                        priority=pattern.priority,
                    )
                )

        if len(lines) < self.short_file_threshold and not _is_entry_file(record.path):
            gaps.append(
                Gap(
                    kind=GapKind.INCOMPLETE,
                    file_path=record.path,
                    description="File seems incomplete (very short)",
                    priority=Priority.MEDIUM,
                )
            )
        return gaps


def _is_entry_file(path: str) -> bool:
    return "index" in path or path.rsplit("/", 1)[-1] == "__init__.py"


__all__ = [
    "DEFAULT_PATTERN_FAMILIES",
    "DEFAULT_SHORT_FILE_THRESHOLD",
    "GapDetector",
    "GapPattern",
]
