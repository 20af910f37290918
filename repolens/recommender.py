"""Rule table that turns analysis facts into an ordered improvement list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .analyzers.utils import merged_node_dependencies
from .models import (
    Category,
    CodebaseLayout,
    DesignSystem,
    Effort,
    Gap,
    GapKind,
    Priority,
    QualityProfile,
    Recommendation,
    RepoSnapshot,
    dedupe_by,
)

COVERAGE_TARGET = 60
GAP_COUNT_THRESHOLD = 10

_ENV_TEMPLATES = (".env.example", ".env.sample", ".env.template")
_ESLINT_CONFIG_GLOBS = (".eslintrc", ".eslintrc.*", "eslint.config.*")


@dataclass(frozen=True)
class RuleInput:
    quality: QualityProfile
    layout: CodebaseLayout
    gaps: Sequence[Gap]
    snapshot: RepoSnapshot

    def gap_count(self, kind: GapKind) -> int:
        return sum(1 for gap in self.gaps if gap.kind is kind)


Predicate = Callable[[RuleInput], bool]


def _rec(
    key: str, description: str, priority: Priority, effort: Effort, category: Category
) -> Recommendation:
    return Recommendation(
        key=key,
        description=description,
        priority=priority,
        estimated_effort=effort,
        category=category,
    )


def _always(_: RuleInput) -> bool:
    return True


def _has_readme(facts: RuleInput) -> bool:
    return any(path.lower() == "readme.md" for path in facts.snapshot.paths())


def _has_eslint(facts: RuleInput) -> bool:
    if "eslint" in merged_node_dependencies(facts.layout.package_json):
        return True
    return bool(facts.snapshot.match(_ESLINT_CONFIG_GLOBS))


# Order matters: most structurally significant first. Reports rely on it.
RULES: Tuple[Tuple[Recommendation, Predicate], ...] = (
    (
        _rec(
            "migrate-to-house-design-system",
            "Replace current UI components with the in-house design system",
            Priority.HIGH,
            Effort.LARGE,
            Category.DESIGN_SYSTEM,
        ),
        lambda facts: facts.quality.design_system is not DesignSystem.HOUSE,
    ),
    (
        _rec(
            "add-typescript",
            "Convert JavaScript to TypeScript for better type safety",
            Priority.HIGH,
            Effort.LARGE,
            Category.CODE_QUALITY,
        ),
        lambda facts: not facts.quality.has_typed_source,
    ),
    (
        _rec(
            "add-test-coverage",
            "Add unit and integration tests",
            Priority.HIGH,
            Effort.MEDIUM,
            Category.TESTING,
        ),
        lambda facts: not facts.quality.has_tests,
    ),
    (
        _rec(
            "improve-test-coverage",
            "Increase test coverage to at least 80%",
            Priority.MEDIUM,
            Effort.MEDIUM,
            Category.TESTING,
        ),
        lambda facts: facts.quality.has_tests
        and facts.quality.metrics.test_coverage_estimate < COVERAGE_TARGET,
    ),
    (
        _rec(
            "complete-todos",
            "Address TODO comments and incomplete implementations",
            Priority.MEDIUM,
            Effort.MEDIUM,
            Category.CODE_QUALITY,
        ),
        lambda facts: len(facts.gaps) > GAP_COUNT_THRESHOLD,
    ),
    (
        _rec(
            "replace-mock-data",
            "Replace mock data with real API integrations",
            Priority.HIGH,
            Effort.MEDIUM,
            Category.STRUCTURE,
        ),
        lambda facts: facts.gap_count(GapKind.MOCK) > 0,
    ),
    (
        _rec(
            "implement-stubs",
            "Complete stub function implementations",
            Priority.HIGH,
            Effort.MEDIUM,
            Category.CODE_QUALITY,
        ),
        lambda facts: facts.gap_count(GapKind.STUB) > 0,
    ),
    (
        _rec(
            "add-error-boundaries",
            "Add React error boundaries for better error handling",
            Priority.MEDIUM,
            Effort.SMALL,
            Category.STRUCTURE,
        ),
        lambda facts: bool(facts.layout.components),
    ),
    (
        _rec(
            "improve-accessibility",
            "Ensure WCAG 2.1 AA compliance",
            Priority.MEDIUM,
            Effort.MEDIUM,
            Category.ACCESSIBILITY,
        ),
        _always,
    ),
    (
        _rec(
            "optimize-performance",
            "Add Next.js performance optimizations (Image, Font, etc.)",
            Priority.MEDIUM,
            Effort.SMALL,
            Category.PERFORMANCE,
        ),
        lambda facts: facts.quality.framework == "Next.js",
    ),
    (
        _rec(
            "extract-env-variables",
            "Extract hardcoded values to environment variables",
            Priority.MEDIUM,
            Effort.SMALL,
            Category.CODE_QUALITY,
        ),
        lambda facts: facts.layout.package_json is not None
        and not any(facts.snapshot.has(name) for name in _ENV_TEMPLATES),
    ),
    (
        _rec(
            "add-documentation",
            "Add README and API documentation",
            Priority.LOW,
            Effort.SMALL,
            Category.STRUCTURE,
        ),
        lambda facts: not _has_readme(facts),
    ),
    (
        _rec(
            "add-ci-cd",
            "Set up continuous integration and deployment",
            Priority.MEDIUM,
            Effort.SMALL,
            Category.STRUCTURE,
        ),
        _always,
    ),
    (
        _rec(
            "add-linting",
            "Add ESLint and Prettier for code quality",
            Priority.LOW,
            Effort.SMALL,
            Category.CODE_QUALITY,
        ),
        lambda facts: not _has_eslint(facts),
    ),
    (
        _rec(
            "improve-seo",
            "Add SEO optimizations and meta tags",
            Priority.LOW,
            Effort.SMALL,
            Category.PERFORMANCE,
        ),
        lambda facts: facts.quality.framework in {"Next.js", "Gatsby"},
    ),
    (
        _rec(
            "add-loading-states",
            "Add loading indicators for async operations",
            Priority.LOW,
            Effort.SMALL,
            Category.ACCESSIBILITY,
        ),
        _always,
    ),
    (
        _rec(
            "add-form-validation",
            "Add client and server-side form validation",
            Priority.MEDIUM,
            Effort.SMALL,
            Category.CODE_QUALITY,
        ),
        lambda facts: any("form" in path.lower() for path in facts.layout.components),
    ),
)


def recommend(
    quality: Optional[QualityProfile],
    layout: Optional[CodebaseLayout],
    gaps: Sequence[Gap],
    snapshot: RepoSnapshot,
    *,
    rules: Sequence[Tuple[Recommendation, Predicate]] = RULES,
) -> List[Recommendation]:
    """Evaluate ``rules`` in order; unique keys, first occurrence wins."""
    if quality is None or layout is None:
        return []

    facts = RuleInput(quality=quality, layout=layout, gaps=tuple(gaps), snapshot=snapshot)
    matched = [recommendation for recommendation, predicate in rules if predicate(facts)]
    return dedupe_by(matched, lambda recommendation: recommendation.key)


__all__ = ["COVERAGE_TARGET", "GAP_COUNT_THRESHOLD", "RULES", "RuleInput", "recommend"]
