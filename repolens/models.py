"""Core data models shared across repolens components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .globs import compile_globs, matches_any


@dataclass(frozen=True)
class FileRecord:
    """A single repository file captured at scan time."""

    path: str
    content: str
    size_bytes: int
    modified_at: datetime
    extension: str

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def stem(self) -> str:
        name = self.name
        return name.split(".", 1)[0] if not name.startswith(".") else name


@dataclass(frozen=True)
class SkippedFile:
    """A file the scanner could not load; recorded instead of failing the scan."""

    path: str
    reason: str


@dataclass(frozen=True)
class RepoSnapshot:
    """Immutable view of a repository at analysis time."""

    root: str
    files: Tuple[FileRecord, ...]
    skipped: Tuple[SkippedFile, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.files

    def paths(self) -> List[str]:
        return [record.path for record in self.files]

    def get(self, path: str) -> Optional[FileRecord]:
        for record in self.files:
            if record.path == path:
                return record
        return None

    def has(self, path: str) -> bool:
        return self.get(path) is not None

    def match(
        self, patterns: Sequence[str], *, ignore: Sequence[str] = ()
    ) -> List[FileRecord]:
        """Return records whose path matches any glob, in scan order."""
        include = compile_globs(patterns)
        exclude = compile_globs(ignore)
        return [
            record
            for record in self.files
            if matches_any(record.path, include) and not matches_any(record.path, exclude)
        ]


class DesignSystem(str, Enum):
    HOUSE = "house"
    MATERIAL_UI = "material-ui"
    ANT_DESIGN = "ant-design"
    CHAKRA = "chakra"
    TAILWIND = "tailwind"
    OTHER = "other"
    NONE = "none"


class PackageManager(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class QualityMetrics:
    """Simple aggregates; coverage is an estimate from file counts."""

    loc_count: int = 0
    file_count: int = 0
    test_coverage_estimate: int = 0
    component_count: int = 0


@dataclass(frozen=True)
class QualityProfile:
    """Structured facts about the code base's tooling and quality."""

    has_typed_source: bool = False
    has_tests: bool = False
    design_system: DesignSystem = DesignSystem.NONE
    framework: str = "Unknown"
    package_manager: PackageManager = PackageManager.NPM
    metrics: QualityMetrics = field(default_factory=QualityMetrics)


class FeatureStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass
class ExtractedFeature:
    """A feature or requirement pulled from a prose document."""

    name: str
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    status: Optional[FeatureStatus] = None


@dataclass
class RequirementsAnalysis:
    """Document presence flags plus everything extracted from them."""

    prd: bool = False
    user_stories: bool = False
    technical_specs: bool = False
    mockups: bool = False
    data_models: bool = False
    features: List[ExtractedFeature] = field(default_factory=list)
    user_flows: List[str] = field(default_factory=list)
    models: List[Any] = field(default_factory=list)


class GapKind(str, Enum):
    TODO = "todo"
    STUB = "stub"
    MOCK = "mock"
    PLACEHOLDER = "placeholder"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class Gap:
    """A textual marker of unfinished work; advisory, not a correctness proof."""

    kind: GapKind
    file_path: str
    description: str
    priority: Priority
    line_number: Optional[int] = None


@dataclass(frozen=True)
class CodebaseLayout:
    """Where the components, pages, routes, styles and tests live."""

    framework_id: str = "unknown"
    components: Tuple[str, ...] = ()
    pages: Tuple[str, ...] = ()
    apis: Tuple[str, ...] = ()
    styles: Tuple[str, ...] = ()
    tests: Tuple[str, ...] = ()
    entry_point: Optional[str] = None
    package_json: Optional[Dict[str, Any]] = None


class RepoClassification(str, Enum):
    REQUIREMENTS_ONLY = "requirements-only"
    PARTIAL_IMPLEMENTATION = "partial-implementation"
    EXISTING_APP = "existing-app"
    HYBRID = "hybrid"


class Effort(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class Category(str, Enum):
    DESIGN_SYSTEM = "design-system"
    CODE_QUALITY = "code-quality"
    PERFORMANCE = "performance"
    TESTING = "testing"
    ACCESSIBILITY = "accessibility"
    STRUCTURE = "structure"


@dataclass(frozen=True)
class Recommendation:
    key: str
    description: str
    priority: Priority
    estimated_effort: Effort
    category: Category


@dataclass(frozen=True)
class RepoAnalysis:
    """Aggregate result of one analysis run; read-only once built."""

    classification: RepoClassification
    root: str
    has_code: bool
    has_docs: bool
    quality: QualityProfile
    requirements: RequirementsAnalysis
    gaps: Tuple[Gap, ...]
    recommendations: Tuple[Recommendation, ...]
    file_tree: str
    skipped: Tuple[SkippedFile, ...] = ()
    project_config: Optional[Dict[str, Any]] = None

    @property
    def features(self) -> List[ExtractedFeature]:
        return list(self.requirements.features)

    def improvements(self) -> List[str]:
        """Return recommendations in the compact ``key: description`` form."""
        return [f"{item.key}: {item.description}" for item in self.recommendations]

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


class FileType(str, Enum):
    COMPONENT = "component"
    PAGE = "page"
    API = "api"
    HOOK = "hook"
    STYLE = "style"
    CONFIG = "config"
    TEST = "test"
    DOC = "doc"
    OTHER = "other"


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    FIX = "fix"
    REFACTOR = "refactor"
    ENHANCE = "enhance"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


@dataclass(frozen=True)
class Intent:
    """A free-text generation request reduced to scoring inputs."""

    action: Action
    keywords: FrozenSet[str]
    file_types: FrozenSet[FileType]
    complexity: Complexity = Complexity.SIMPLE
    target_path: Optional[str] = None
    component_name: Optional[str] = None
    raw: str = ""


@dataclass(frozen=True)
class ContextCandidate:
    path: str
    content: str
    type: FileType
    relevance_score: float
    tokens: int = 0
    truncated: bool = False


@dataclass(frozen=True)
class ContextSelection:
    """Files accepted into one request's context budget, best first."""

    intent: Intent
    candidates: Tuple[ContextCandidate, ...]
    total_tokens: int
    max_tokens: int
    max_files: int
    text: str = ""

    def paths(self) -> List[str]:
        return [candidate.path for candidate in self.candidates]

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (frozenset, set)):
        return sorted(_plain(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def dedupe_by(items: Iterable[Any], key) -> List[Any]:
    """Keep the first item per key, preserving order."""
    seen: set = set()
    result: List[Any] = []
    for item in items:
        marker = key(item)
        if marker in seen:
            continue
        seen.add(marker)
        result.append(item)
    return result
