"""Tests for repolens.classifier."""

from __future__ import annotations

import itertools

import pytest

from repolens.classifier import classify
from repolens.models import CodebaseLayout, RepoClassification


def _layout(components: int = 0, pages: int = 0, tests: int = 0) -> CodebaseLayout:
    return CodebaseLayout(
        components=tuple(f"components/C{index}.tsx" for index in range(components)),
        pages=tuple(f"pages/p{index}.tsx" for index in range(pages)),
        tests=tuple(f"tests/t{index}.test.ts" for index in range(tests)),
    )


def test_docs_without_code_is_requirements_only() -> None:
    assert classify(False, True, None) is RepoClassification.REQUIREMENTS_ONLY


def test_code_without_docs_is_existing_app() -> None:
    assert classify(True, False, _layout()) is RepoClassification.EXISTING_APP


def test_nothing_at_all_is_requirements_only() -> None:
    assert classify(False, False, None) is RepoClassification.REQUIREMENTS_ONLY


@pytest.mark.parametrize(
    ("layout", "expected"),
    [
        (None, RepoClassification.PARTIAL_IMPLEMENTATION),
        (_layout(components=3, pages=0), RepoClassification.PARTIAL_IMPLEMENTATION),
        (_layout(components=0, pages=2), RepoClassification.PARTIAL_IMPLEMENTATION),
        (_layout(components=6, pages=1, tests=1), RepoClassification.EXISTING_APP),
        (_layout(components=5, pages=1, tests=1), RepoClassification.HYBRID),
        (_layout(components=9, pages=1, tests=0), RepoClassification.HYBRID),
    ],
)
def test_code_and_docs(layout, expected) -> None:
    assert classify(True, True, layout) is expected


def test_threshold_is_overridable() -> None:
    layout = _layout(components=2, pages=1, tests=1)

    assert classify(True, True, layout) is RepoClassification.HYBRID
    assert (
        classify(True, True, layout, existing_app_component_threshold=1)
        is RepoClassification.EXISTING_APP
    )


def test_classifier_is_total() -> None:
    layouts = [None, _layout(), _layout(1, 1, 0), _layout(8, 2, 3)]
    for code, docs, layout in itertools.product([True, False], [True, False], layouts):
        assert isinstance(classify(code, docs, layout), RepoClassification)
