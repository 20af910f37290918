"""Repository archetype classification."""

from __future__ import annotations

from typing import Optional

from .models import CodebaseLayout, RepoClassification

# Components needed (together with tests) before code plus docs counts as an
# existing app rather than a hybrid. Overridable per call and via config.
EXISTING_APP_COMPONENT_THRESHOLD = 5


def classify(
    has_code: bool,
    has_docs: bool,
    layout: Optional[CodebaseLayout],
    *,
    existing_app_component_threshold: int = EXISTING_APP_COMPONENT_THRESHOLD,
) -> RepoClassification:
    """Map code/doc presence and layout counts to one archetype.

    Rules are evaluated in order and the first match wins; every input
    combination maps to exactly one archetype.
    """
    if not has_code and has_docs:
        return RepoClassification.REQUIREMENTS_ONLY

    if has_code and not has_docs:
        return RepoClassification.EXISTING_APP

    if has_code and has_docs:
        if layout is None:
            return RepoClassification.PARTIAL_IMPLEMENTATION
        if not layout.components or not layout.pages:
            return RepoClassification.PARTIAL_IMPLEMENTATION
        if layout.tests and len(layout.components) > existing_app_component_threshold:
            return RepoClassification.EXISTING_APP
        return RepoClassification.HYBRID

    return RepoClassification.REQUIREMENTS_ONLY


__all__ = ["EXISTING_APP_COMPONENT_THRESHOLD", "classify"]
