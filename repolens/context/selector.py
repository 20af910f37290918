"""Relevance scoring and token-budgeted selection of context files."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

from jinja2 import Environment, FileSystemLoader

from .graph import GraphCache, expand_dependencies
from .intent import parse_intent
from ..logging import get_logger
from ..models import ContextCandidate, ContextSelection, FileRecord, FileType, Intent, RepoSnapshot

logger = get_logger("context.selector")

DEFAULT_MAX_TOKENS = 8000
DEFAULT_MAX_FILES = 10
DEFAULT_DEPENDENCY_DEPTH = 2

PATH_MATCH_SCORE = 30
KEYWORD_SCORE = 5
KEYWORD_MATCH_CAP = 5
FILE_TYPE_SCORE = 20
IMPORT_SCORE = 15
RECENCY_WINDOW_DAYS = 10
RELATED_DECAY = 0.5

_IMPORT_LINE = re.compile(
    r"^\s*(?:import\b|export\b.*\bfrom\b|from\s+[\w.]+\s+import\b|.*\brequire\s*\()"
)
_STYLE_EXTENSIONS = frozenset({".css", ".scss", ".sass", ".less"})
_DOC_EXTENSIONS = frozenset({".md", ".mdx", ".rst", ".txt"})
_CONFIG_EXTENSIONS = frozenset({".json", ".yml", ".yaml", ".toml", ".ini", ".cfg"})
_UI_EXTENSIONS = frozenset({".jsx", ".tsx", ".vue", ".svelte"})
_HOOK_NAME = re.compile(r"^use[A-Z]")
_FENCE_LANGUAGES: Dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "jsx",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".css": "css",
    ".scss": "scss",
    ".json": "json",
    ".md": "markdown",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".html": "html",
    ".vue": "vue",
}


def estimate_tokens(text: str) -> int:
    """Rudimentary token estimate based on character length."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def classify_path(path: str) -> FileType:
    """Bucket a repository path into the file type used for scoring."""
    lowered = path.lower()
    name = path.rsplit("/", 1)[-1]
    suffix = Path(lowered).suffix
    segments = lowered.split("/")[:-1]

    if (
        ".test." in name.lower()
        or ".spec." in name.lower()
        or name.startswith("test_")
        or any(segment in {"__tests__", "tests", "test"} for segment in segments)
    ):
        return FileType.TEST
    if suffix in _STYLE_EXTENSIONS:
        return FileType.STYLE
    if suffix in _DOC_EXTENSIONS:
        return FileType.DOC
    if (
        suffix in _CONFIG_EXTENSIONS
        or ".config." in name.lower()
        or name.lower().startswith(".env")
        or name.lower() in {"dockerfile", "makefile"}
    ):
        return FileType.CONFIG
    if _HOOK_NAME.match(name) or "hooks" in segments:
        return FileType.HOOK
    if "api" in segments or "routes" in segments or "endpoints" in segments:
        return FileType.API
    if "pages" in segments or "views" in segments or "screens" in segments:
        return FileType.PAGE
    if "app" in segments and Path(lowered).stem in {"page", "layout"}:
        return FileType.PAGE
    if "components" in segments or suffix in _UI_EXTENSIONS:
        return FileType.COMPONENT
    return FileType.OTHER


@dataclass(frozen=True)
class _Scored:
    record: FileRecord
    score: float
    relevant: bool


class ContextSelector:
    """Ranks snapshot files against an intent and fills a token budget."""

    def __init__(
        self,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        max_files: int = DEFAULT_MAX_FILES,
        reference_time: Optional[datetime] = None,
        *,
        graphs: Optional[GraphCache] = None,
        templates_dir: Path | None = None,
    ) -> None:
        if max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if max_files < 1:
            raise ValueError("max_files must be at least 1")
        self.max_tokens = max_tokens
        self.max_files = max_files
        if reference_time is not None and reference_time.tzinfo is None:
            # Scanned mtimes are UTC-aware.
            reference_time = reference_time.replace(tzinfo=timezone.utc)
        self.reference_time = reference_time
        self.graphs = graphs or GraphCache()
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["fence_language"] = _fence_language

    def select(
        self,
        snapshot: RepoSnapshot,
        intent: Union[Intent, str],
        *,
        include_related: bool = False,
        depth: int = DEFAULT_DEPENDENCY_DEPTH,
    ) -> ContextSelection:
        if isinstance(intent, str):
            intent = parse_intent(intent)

        reference = self.reference_time or _newest_mtime(snapshot)
        scored = [self._score(record, intent, reference) for record in snapshot.files if record.content]
        if include_related:
            scored = self._with_related(snapshot, intent, scored, depth)

        pool = [item for item in scored if item.score > 0]
        if any(item.relevant for item in pool):
            pool = [item for item in pool if item.relevant]
        if not pool:
            # Nothing scored, so rank every readable file rather than return nothing.
            pool = scored
        # sorted() is stable, so equal scores keep scan order.
        ranked = sorted(pool, key=lambda item: item.score, reverse=True)

        candidates, total = self._fill_budget(ranked)
        logger.debug(
            "Selected %d of %d candidate files (%d/%d tokens)",
            len(candidates),
            len(ranked),
            total,
            self.max_tokens,
        )
        selection = ContextSelection(
            intent=intent,
            candidates=tuple(candidates),
            total_tokens=total,
            max_tokens=self.max_tokens,
            max_files=self.max_files,
        )
        return replace(selection, text=self.assemble(selection))

    def assemble(self, selection: ContextSelection) -> str:
        """Render accepted files into one context string."""
        template = self._env.get_template("context.j2")
        return template.render(intent=selection.intent, candidates=selection.candidates).strip() + "\n"

    def _score(self, record: FileRecord, intent: Intent, reference: datetime) -> _Scored:
        path_score = PATH_MATCH_SCORE if _matches_target(record, intent) else 0

        lowered = record.content.lower()
        occurrences = sum(_count_occurrences(lowered, keyword) for keyword in intent.keywords)
        keyword_score = KEYWORD_SCORE * min(occurrences, KEYWORD_MATCH_CAP)

        import_score = IMPORT_SCORE if _imports_mention(record.content, intent.keywords) else 0
        type_score = FILE_TYPE_SCORE if classify_path(record.path) in intent.file_types else 0

        age_days = max(0, (reference - record.modified_at).days)
        recency_score = max(0, RECENCY_WINDOW_DAYS - age_days)

        relevant = bool(path_score or keyword_score or import_score)
        total = path_score + keyword_score + import_score + type_score + recency_score
        return _Scored(record=record, score=float(total), relevant=relevant)

    def _with_related(
        self,
        snapshot: RepoSnapshot,
        intent: Intent,
        scored: List[_Scored],
        depth: int,
    ) -> List[_Scored]:
        start = next((item for item in scored if _matches_target(item.record, intent)), None)
        if start is None:
            return scored

        graph = self.graphs.get(snapshot)
        related = set(expand_dependencies(graph, start.record.path, depth)[1:])
        if not related:
            return scored

        decayed = round(start.score * RELATED_DECAY, 2)
        boosted: List[_Scored] = []
        for item in scored:
            if item.record.path in related:
                item = _Scored(record=item.record, score=max(item.score, decayed), relevant=True)
            boosted.append(item)
        return boosted

    def _fill_budget(self, ranked: Sequence[_Scored]) -> Tuple[List[ContextCandidate], int]:
        accepted: List[ContextCandidate] = []
        total = 0
        for item in ranked:
            if len(accepted) >= self.max_files:
                break
            tokens = estimate_tokens(item.record.content)
            if not accepted and tokens > self.max_tokens:
                content = item.record.content[: self.max_tokens * 4]
                accepted.append(_candidate(item, content, truncated=True))
                total = estimate_tokens(content)
                break
            if total + tokens > self.max_tokens:
                continue
            accepted.append(_candidate(item, item.record.content))
            total += tokens
        return accepted, total


def _candidate(item: _Scored, content: str, *, truncated: bool = False) -> ContextCandidate:
    return ContextCandidate(
        path=item.record.path,
        content=content,
        type=classify_path(item.record.path),
        relevance_score=item.score,
        tokens=estimate_tokens(content),
        truncated=truncated,
    )


def _matches_target(record: FileRecord, intent: Intent) -> bool:
    if intent.target_path and intent.target_path.lower() in record.path.lower():
        return True
    if intent.component_name and record.stem.lower() == intent.component_name.lower():
        return True
    return False


def _count_occurrences(lowered: str, keyword: str) -> int:
    if len(keyword) < 3:
        # Short tags like "ui" only count as whole words.
        return len(re.findall(rf"\b{re.escape(keyword)}\b", lowered))
    return lowered.count(keyword)


def _imports_mention(content: str, keywords: FrozenSet[str]) -> bool:
    if not keywords:
        return False
    for line in content.split("\n"):
        if not _IMPORT_LINE.match(line):
            continue
        lowered = line.lower()
        if any(_count_occurrences(lowered, keyword) for keyword in keywords):
            return True
    return False


def _newest_mtime(snapshot: RepoSnapshot) -> datetime:
    return max(record.modified_at for record in snapshot.files) if snapshot.files else datetime.min


def _fence_language(path: str) -> str:
    return _FENCE_LANGUAGES.get(Path(path).suffix.lower(), "")


__all__ = [
    "ContextSelector",
    "DEFAULT_MAX_FILES",
    "DEFAULT_MAX_TOKENS",
    "classify_path",
    "estimate_tokens",
]
