"""Pipeline orchestration for analysis and context-selection runs."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from .analyzers.gaps import GapDetector
from .analyzers.layout import LayoutAnalyzer
from .analyzers.quality import QualityAnalyzer
from .analyzers.requirements import RequirementsExtractor
from .analyzers.utils import has_code, has_docs, load_project_descriptor
from .classifier import classify
from .config import ConfigError, LensConfig, load_config
from .context.graph import GraphCache
from .context.selector import ContextSelector
from .logging import get_logger
from .models import (
    ContextSelection,
    Gap,
    Intent,
    QualityProfile,
    RepoAnalysis,
    RepoSnapshot,
    RequirementsAnalysis,
)
from .recommender import recommend
from .repo_scanner import RepoScanner, render_file_tree

SelectorFactory = Callable[[int, int], ContextSelector]


@dataclass(frozen=True)
class ContextOptions:
    """Per-request overrides; ``None`` defers to the repository config."""

    max_tokens: Optional[int] = None
    max_files: Optional[int] = None
    include_related: bool = False
    depth: Optional[int] = None


class Orchestrator:
    """Coordinates the analysis and context pipelines over one snapshot."""

    def __init__(
        self,
        scanner: RepoScanner | None = None,
        *,
        quality: QualityAnalyzer | None = None,
        layout: LayoutAnalyzer | None = None,
        requirements: RequirementsExtractor | None = None,
        gap_detector: GapDetector | None = None,
        selector_factory: SelectorFactory | None = None,
    ) -> None:
        self._scanner = scanner
        self.quality = quality or QualityAnalyzer()
        self.layout = layout or LayoutAnalyzer()
        self.requirements = requirements or RequirementsExtractor()
        self._gap_detector = gap_detector
        self._selector_factory = selector_factory
        self._graphs = GraphCache()
        self.logger = get_logger("orchestrator")

    def scan(self, path: str, config: LensConfig | None = None) -> RepoSnapshot:
        repo_path = Path(path).expanduser()
        config = config or self._load_config(repo_path)
        scanner = self._scanner or RepoScanner(
            max_depth=config.scanner.max_depth,
            max_file_bytes=config.scanner.max_file_bytes,
        )
        return scanner.scan(str(repo_path), include=config.scanner.include or None)

    def run_analysis(self, path: str) -> RepoAnalysis:
        """Scan ``path`` and produce the aggregate analysis."""
        repo_path = Path(path).expanduser()
        self.logger.info("Analyzing %s", repo_path)
        config = self._load_config(repo_path)
        snapshot = self.scan(str(repo_path), config)
        return self.analyze_snapshot(snapshot, config)

    def run_context(
        self,
        path: str,
        intent: Union[Intent, str],
        options: ContextOptions | None = None,
    ) -> ContextSelection:
        """Scan ``path`` and select the files most relevant to ``intent``."""
        repo_path = Path(path).expanduser()
        self.logger.info("Selecting context in %s", repo_path)
        config = self._load_config(repo_path)
        snapshot = self.scan(str(repo_path), config)
        return self.select_context(snapshot, intent, options, config)

    def run_all(
        self,
        path: str,
        intent: Union[Intent, str],
        options: ContextOptions | None = None,
    ) -> Tuple[RepoAnalysis, ContextSelection]:
        """Run both pipelines concurrently over a single scan."""
        repo_path = Path(path).expanduser()
        config = self._load_config(repo_path)
        snapshot = self.scan(str(repo_path), config)
        with ThreadPoolExecutor(max_workers=2) as pool:
            analysis = pool.submit(self.analyze_snapshot, snapshot, config)
            selection = pool.submit(self.select_context, snapshot, intent, options, config)
            return analysis.result(), selection.result()

    def analyze_snapshot(
        self, snapshot: RepoSnapshot, config: LensConfig | None = None
    ) -> RepoAnalysis:
        config = config or LensConfig(root=Path(snapshot.root))
        code = has_code(snapshot)
        docs = has_docs(snapshot)
        self.logger.debug("Signals: code=%s docs=%s", code, docs)

        quality = self.quality.analyze(snapshot) if code else None
        layout = self.layout.analyze(snapshot) if code else None
        requirements = self.requirements.analyze(snapshot) if docs else RequirementsAnalysis()
        gaps: List[Gap] = self._gaps(config).analyze(snapshot) if code else []

        classification = classify(
            code,
            docs,
            layout,
            existing_app_component_threshold=config.classifier.existing_app_component_threshold,
        )
        recommendations = recommend(quality, layout, gaps, snapshot)
        self.logger.info(
            "Classified as %s with %d gaps and %d recommendations",
            classification.value,
            len(gaps),
            len(recommendations),
        )
        return RepoAnalysis(
            classification=classification,
            root=snapshot.root,
            has_code=code,
            has_docs=docs,
            quality=quality or QualityProfile(),
            requirements=requirements,
            gaps=tuple(gaps),
            recommendations=tuple(recommendations),
            file_tree=render_file_tree(snapshot),
            skipped=snapshot.skipped,
            project_config=load_project_descriptor(snapshot),
        )

    def select_context(
        self,
        snapshot: RepoSnapshot,
        intent: Union[Intent, str],
        options: ContextOptions | None = None,
        config: LensConfig | None = None,
    ) -> ContextSelection:
        options = options or ContextOptions()
        config = config or LensConfig(root=Path(snapshot.root))
        max_tokens = _override(options.max_tokens, config.context.max_tokens)
        max_files = _override(options.max_files, config.context.max_files)
        depth = _override(options.depth, config.context.dependency_depth)

        if self._selector_factory is not None:
            selector = self._selector_factory(max_tokens, max_files)
        else:
            selector = ContextSelector(max_tokens, max_files, graphs=self._graphs)
        return selector.select(
            snapshot,
            intent,
            include_related=options.include_related,
            depth=depth,
        )

    def _gaps(self, config: LensConfig) -> GapDetector:
        if self._gap_detector is not None:
            return self._gap_detector
        return GapDetector(short_file_threshold=config.gaps.short_file_threshold)

    def _load_config(self, repo_path: Path) -> LensConfig:
        try:
            return load_config(repo_path)
        except ConfigError as exc:
            self.logger.warning("Using default configuration: %s", exc)
            return LensConfig(root=repo_path)


def _override(value: Optional[int], default: int) -> int:
    return default if value is None else value


__all__ = ["ContextOptions", "Orchestrator"]
