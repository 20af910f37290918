"""Quality and framework analyzer implementation."""

from __future__ import annotations

from typing import Dict, Tuple

from .base import Analyzer
from .utils import (
    TEST_SOURCE_IGNORE,
    detect_framework_label,
    detect_node_package_manager,
    load_package_json,
    load_python_dependencies,
    merged_node_dependencies,
)
from ..logging import get_logger
from ..models import DesignSystem, QualityMetrics, QualityProfile, RepoSnapshot

_TYPE_CONFIG_FILES = ("tsconfig.json",)
_TYPED_SOURCE_GLOBS = ("**/*.{ts,tsx}",)

_TEST_RUNNER_CONFIGS = (
    "jest.config.js",
    "jest.config.ts",
    "vitest.config.js",
    "vitest.config.ts",
    ".mocharc.json",
    "cypress.config.js",
    "playwright.config.js",
)
_TEST_PATH_GLOBS = (
    "**/*.{test,spec}.{js,jsx,ts,tsx}",
    "**/__tests__/**",
    "**/test/**",
    "**/tests/**",
)

# Checked top to bottom; the first row with any package present wins.
_DESIGN_SYSTEMS: Tuple[Tuple[DesignSystem, Tuple[str, ...]], ...] = (
    (DesignSystem.HOUSE, ("biokit-design-system", "@biokit/design-system")),
    (DesignSystem.MATERIAL_UI, ("@mui/material", "@material-ui/core")),
    (DesignSystem.ANT_DESIGN, ("antd",)),
    (DesignSystem.CHAKRA, ("@chakra-ui/react",)),
    (DesignSystem.TAILWIND, ("tailwindcss",)),
    (DesignSystem.OTHER, ("styled-components", "@emotion/react")),
)
_TAILWIND_CONFIGS = ("tailwind.config.js", "tailwind.config.ts")

_METRIC_CODE_GLOBS = ("**/*.{js,jsx,ts,tsx}", "**/*.{css,scss,sass}")
_METRIC_COMPONENT_GLOBS = ("**/components/**/*.{jsx,tsx}",)
_METRIC_TEST_GLOBS = ("**/*.{test,spec}.{js,jsx,ts,tsx}",)

logger = get_logger("analyzers.quality")


class QualityAnalyzer(Analyzer[QualityProfile]):
    """Derives typed-source, test, framework and design-system facts."""

    name = "quality"

    def analyze(self, snapshot: RepoSnapshot) -> QualityProfile:
        package_json = load_package_json(snapshot)
        deps = merged_node_dependencies(package_json)

        profile = QualityProfile(
            has_typed_source=self._has_typed_source(snapshot),
            has_tests=self._has_tests(snapshot),
            design_system=self._detect_design_system(snapshot, deps),
            framework=detect_framework_label(deps, load_python_dependencies(snapshot)),
            package_manager=detect_node_package_manager(snapshot),
            metrics=self._metrics(snapshot),
        )
        logger.debug(
            "Quality profile: framework=%s design_system=%s tests=%s typed=%s",
            profile.framework,
            profile.design_system.value,
            profile.has_tests,
            profile.has_typed_source,
        )
        return profile

    @staticmethod
    def _has_typed_source(snapshot: RepoSnapshot) -> bool:
        if any(snapshot.has(name) for name in _TYPE_CONFIG_FILES):
            return True
        return bool(snapshot.match(_TYPED_SOURCE_GLOBS))

    @staticmethod
    def _has_tests(snapshot: RepoSnapshot) -> bool:
        if any(snapshot.has(name) for name in _TEST_RUNNER_CONFIGS):
            return True
        return bool(snapshot.match(_TEST_PATH_GLOBS))

    @staticmethod
    def _detect_design_system(snapshot: RepoSnapshot, deps: Dict[str, str]) -> DesignSystem:
        for system, packages in _DESIGN_SYSTEMS:
            if not any(package in deps for package in packages):
                continue
            if system is DesignSystem.TAILWIND and not any(
                snapshot.has(name) for name in _TAILWIND_CONFIGS
            ):
                # Utility CSS without its config file does not count.
                continue
            return system
        return DesignSystem.NONE

    @staticmethod
    def _metrics(snapshot: RepoSnapshot) -> QualityMetrics:
        code_files = snapshot.match(_METRIC_CODE_GLOBS)
        loc_count = sum(len(record.content.split("\n")) for record in code_files)
        components = snapshot.match(_METRIC_COMPONENT_GLOBS, ignore=TEST_SOURCE_IGNORE)
        tests = snapshot.match(_METRIC_TEST_GLOBS)
        coverage = min(100, round(100 * len(tests) / max(1, len(code_files))))
        return QualityMetrics(
            loc_count=loc_count,
            file_count=len(code_files),
            test_coverage_estimate=coverage,
            component_count=len(components),
        )


__all__ = ["QualityAnalyzer"]
