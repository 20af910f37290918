"""Requirements and feature extraction from prose documents.

Documents are classified by filename and mined with line-oriented regular
expressions. This is a heuristic reading of markdown, not a parser: unusual
formatting produces missed or spurious features and that is acceptable.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Tuple

import yaml

from .base import Analyzer
from ..logging import get_logger
from ..models import (
    ExtractedFeature,
    FeatureStatus,
    FileRecord,
    Priority,
    RepoSnapshot,
    RequirementsAnalysis,
    dedupe_by,
)

_DOC_GLOBS: Tuple[str, ...] = (
    "**/*.md",
    "**/requirements/**/*",
    "**/docs/**/*",
    "**/design/**/*",
)

_MOCKUP_GLOBS: Tuple[str, ...] = (
    "**/mockups/**/*.{png,jpg,jpeg,svg,pdf}",
    "**/design/**/*.{png,jpg,jpeg,svg,pdf,fig,sketch}",
    "**/wireframes/**/*.{png,jpg,jpeg,svg,pdf}",
)

# Filename substrings per document category; one file may hit several.
PRD_MARKERS = ("prd", "product-requirement")
STORY_MARKERS = ("user-stor", "stories")
TECH_SPEC_MARKERS = ("technical", "spec")
DATA_MODEL_MARKERS = ("data-model", "schema")
FLOW_MARKERS = ("flow", "journey")

HIGH_PRIORITY_TERMS = ("must", "required", "critical", "essential", "p0", "p1")
LOW_PRIORITY_TERMS = ("nice to have", "optional", "future", "later", "p3", "p4")

_FEATURES_HEADING = re.compile(r"^#{1,3}\s*(features|functionality|requirements)", re.IGNORECASE)
_SECTION_HEADING = re.compile(r"^#{1,3}\s")
_FEATURE_WORDS = re.compile(r"features|functionality|requirements", re.IGNORECASE)
_BULLET = re.compile(r"^[-*]\s+(.+)")
_CONTINUATION = re.compile(r"^\s{2,}")
_CHECKBOX = re.compile(r"^\[( |x|X)\]\s+")
_STATUS_SUFFIX = re.compile(
    r"\s*[\[(](planned|todo|in[- ]progress|wip|done|completed)[\])]\s*$", re.IGNORECASE
)

_STORY = re.compile(
    r"as\s+an?\s+(.+?),?\s+i\s+want\s+(.+?)\s+so\s+that\s+(.+)", re.IGNORECASE
)
_STORY_BULLET = re.compile(
    r"^[-*]\s*\[?(user story|story|feature)\]?:?\s*(.+)", re.IGNORECASE | re.MULTILINE
)

_CODE_BLOCK = re.compile(r"```([\w+-]*)[^\n]*\n(.*?)```", re.DOTALL)
_SCHEMA_WORDS = re.compile(r"interface|type|schema|model", re.IGNORECASE)
_TABLE_LINE = re.compile(r"\|(.+)\|")

_FLOW_HEADING = re.compile(r"^#{1,3}\s*(user flow|flow|journey|process)", re.IGNORECASE)
_ANY_HEADING = re.compile(r"^#{1,6}\s")

logger = get_logger("analyzers.requirements")


class ParseFailure(ValueError):
    """Raised when a fenced block in a document is not structured data."""


class RequirementsExtractor(Analyzer[RequirementsAnalysis]):
    """Reads PRDs, user stories, data-model docs and flow docs."""

    name = "requirements"

    def analyze(self, snapshot: RepoSnapshot) -> RequirementsAnalysis:
        analysis = RequirementsAnalysis()
        features: List[ExtractedFeature] = []

        for record in snapshot.match(_DOC_GLOBS):
            if not record.content:
                continue
            filename = record.name.lower()

            if _contains_any(filename, PRD_MARKERS):
                analysis.prd = True
                features.extend(extract_prd_features(record.content))

            if _contains_any(filename, STORY_MARKERS):
                analysis.user_stories = True
                features.extend(extract_user_stories(record.content))

            if _contains_any(filename, TECH_SPEC_MARKERS):
                analysis.technical_specs = True

            if _contains_any(filename, DATA_MODEL_MARKERS):
                analysis.data_models = True
                analysis.models.extend(self._extract_models(record))

            if _contains_any(filename, FLOW_MARKERS):
                analysis.user_flows.extend(extract_user_flows(record.content))

        analysis.mockups = bool(snapshot.match(_MOCKUP_GLOBS))
        analysis.features = dedupe_by(features, lambda feature: feature.name.lower())
        logger.debug(
            "Extracted %d features, %d flows, %d data models",
            len(analysis.features),
            len(analysis.user_flows),
            len(analysis.models),
        )
        return analysis

    @staticmethod
    def _extract_models(record: FileRecord) -> List[Any]:
        return extract_data_models(record.content, source=record.path)


def detect_priority(text: str) -> Priority:
    lowered = text.lower()
    if _contains_any(lowered, HIGH_PRIORITY_TERMS):
        return Priority.HIGH
    if _contains_any(lowered, LOW_PRIORITY_TERMS):
        return Priority.LOW
    return Priority.MEDIUM


def extract_prd_features(content: str) -> List[ExtractedFeature]:
    features: List[ExtractedFeature] = []
    in_features = False
    current: Optional[ExtractedFeature] = None

    for line in content.split("\n"):
        if _FEATURES_HEADING.match(line):
            in_features = True
            continue

        if in_features and _SECTION_HEADING.match(line) and not _FEATURE_WORDS.search(line):
            in_features = False

        if not in_features:
            continue

        bullet = _BULLET.match(line)
        if bullet:
            name, status = _split_status(bullet.group(1).strip())
            current = ExtractedFeature(name=name, priority=detect_priority(name), status=status)
            features.append(current)
        elif current is not None and _CONTINUATION.match(line) and line.strip():
            current.description = f"{current.description or ''}{line.strip()} "

    for feature in features:
        if feature.description:
            feature.description = feature.description.strip()
    return features


def _split_status(text: str) -> Tuple[str, Optional[FeatureStatus]]:
    status: Optional[FeatureStatus] = None
    checkbox = _CHECKBOX.match(text)
    if checkbox:
        status = FeatureStatus.PLANNED if checkbox.group(1) == " " else FeatureStatus.COMPLETED
        text = text[checkbox.end():]

    suffix = _STATUS_SUFFIX.search(text)
    if suffix:
        marker = suffix.group(1).lower().replace(" ", "-")
        if marker in {"done", "completed"}:
            status = FeatureStatus.COMPLETED
        elif marker in {"in-progress", "wip"}:
            status = FeatureStatus.IN_PROGRESS
        else:
            status = FeatureStatus.PLANNED
        text = text[: suffix.start()]
    return text.strip(), status


def extract_user_stories(content: str) -> List[ExtractedFeature]:
    features: List[ExtractedFeature] = []

    for match in _STORY.finditer(content):
        role, goal, benefit = match.groups()
        features.append(
            ExtractedFeature(
                name=goal.strip(),
                description=f"As a {role.strip()}, {benefit.strip()}",
                priority=Priority.MEDIUM,
            )
        )

    for match in _STORY_BULLET.finditer(content):
        features.append(ExtractedFeature(name=match.group(2).strip(), priority=Priority.MEDIUM))

    return features


def parse_structured_block(language: str, block: str) -> Any:
    """Parse a fenced block as JSON (or YAML when fenced as such)."""
    language = language.lower()
    try:
        if language in {"yaml", "yml"}:
            parsed = yaml.safe_load(block)
        elif language in {"", "json", "jsonc"}:
            parsed = json.loads(block)
        else:
            raise ParseFailure(f"{language} blocks are not structured data")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ParseFailure(str(exc)) from exc
    if not isinstance(parsed, (dict, list)):
        raise ParseFailure("block does not describe an object")
    return parsed


def extract_data_models(content: str, *, source: str = "") -> List[Any]:
    models: List[Any] = []

    for match in _CODE_BLOCK.finditer(content):
        language, block = match.group(1), match.group(2)
        try:
            models.append(parse_structured_block(language, block))
        except ParseFailure as exc:
            logger.debug("Keeping raw block from %s: %s", source or "document", exc)
            if _SCHEMA_WORDS.search(block):
                models.append({"raw": block})

    table_lines = [line for line in content.split("\n") if _TABLE_LINE.search(line)]
    if len(table_lines) >= 3:
        models.append({"table": table_lines})

    return models


def extract_user_flows(content: str) -> List[str]:
    flows: List[str] = []
    current: List[str] = []
    in_flow = False

    for line in content.split("\n"):
        if _FLOW_HEADING.match(line):
            if current:
                flows.append("\n".join(current).strip())
            current = [re.sub(r"^#+\s*", "", line)]
            in_flow = True
        elif in_flow:
            if _ANY_HEADING.match(line):
                flows.append("\n".join(current).strip())
                current = []
                in_flow = False
            else:
                current.append(line)

    if current:
        flows.append("\n".join(current).strip())
    return flows


def _contains_any(text: str, needles: Tuple[str, ...]) -> bool:
    return any(needle in text for needle in needles)


__all__ = [
    "ParseFailure",
    "RequirementsExtractor",
    "detect_priority",
    "extract_data_models",
    "extract_prd_features",
    "extract_user_flows",
    "extract_user_stories",
    "parse_structured_block",
]
