"""Turns a free-text generation request into an ``Intent``."""

from __future__ import annotations

import re
from typing import FrozenSet, List, Optional, Set, Tuple

from ..models import Action, Complexity, FileType, Intent

# First matching family wins, so the order here is the precedence order.
ACTION_PATTERNS: Tuple[Tuple[Action, re.Pattern[str]], ...] = (
    (Action.CREATE, re.compile(r"\b(create|add|build|make|generate|implement|scaffold|new)\b", re.I)),
    (Action.UPDATE, re.compile(r"\b(update|change|modify|edit|adjust|rename|replace|move)\b", re.I)),
    (Action.FIX, re.compile(r"\b(fix|repair|resolve|debug|correct|patch|bug|broken|crash\w*)\b", re.I)),
    (Action.REFACTOR, re.compile(r"\b(refactor|restructure|reorganize|clean\s*up|simplify|extract|split)\b", re.I)),
    (Action.ENHANCE, re.compile(r"\b(enhance|improve|optimi[sz]e|extend|upgrade|polish|speed\s+up)\b", re.I)),
)

_SOURCE_EXTENSIONS = "tsx|ts|jsx|js|mjs|cjs|vue|svelte|py|go|java|css|scss|sass|less|json|md|html"
_PATH_TOKEN = re.compile(
    rf"(?<![\w@./-])((?:[\w@.-]+/)+[\w@.-]+|[\w@-]+\.(?:{_SOURCE_EXTENSIONS}))(?![\w/])"
)
_PASCAL_CASE = re.compile(r"\b([A-Z][a-z0-9]+(?:[A-Z][a-z0-9]*)+)\b")
_NAMED_COMPONENT = re.compile(r"\b(\w+)\s+component\b", re.I)
_TOKEN = re.compile(r"[A-Za-z][A-Za-z0-9_]*")

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "a", "an", "and", "any", "are", "as", "at", "be", "but", "by", "can", "do",
        "does", "for", "from", "get", "has", "have", "how", "i", "in", "into", "is",
        "it", "its", "me", "my", "need", "needs", "not", "of", "on", "or", "our",
        "please", "should", "so", "some", "that", "the", "their", "them", "then",
        "there", "this", "to", "up", "us", "use", "using", "want", "was", "we",
        "when", "where", "which", "while", "will", "with", "would", "you", "your",
        "all", "also", "just", "make", "new", "add", "create", "build", "generate",
        "implement", "scaffold", "update", "change", "modify", "edit", "adjust",
        "rename", "replace", "move", "fix", "repair", "resolve", "debug", "correct",
        "patch", "refactor", "restructure", "reorganize", "clean", "simplify",
        "extract", "split", "enhance", "improve", "optimize", "optimise", "extend",
        "upgrade", "polish", "file", "code",
    }
)

# (trigger words, domain tag added to the keywords, file types implied)
DOMAIN_TRIGGERS: Tuple[Tuple[FrozenSet[str], str, FrozenSet[FileType]], ...] = (
    (
        frozenset({"hook", "hooks", "state", "usestate", "useeffect", "context", "reducer"}),
        "ui",
        frozenset({FileType.COMPONENT, FileType.HOOK}),
    ),
    (
        frozenset({"component", "components", "button", "form", "modal", "input", "card",
                   "navbar", "header", "footer", "layout", "onclick", "dialog", "ui"}),
        "ui",
        frozenset({FileType.COMPONENT}),
    ),
    (
        frozenset({"page", "pages", "screen", "view", "dashboard"}),
        "ui",
        frozenset({FileType.PAGE}),
    ),
    (
        frozenset({"api", "endpoint", "endpoints", "route", "routes", "fetch", "server",
                   "request", "handler", "rest", "graphql"}),
        "api",
        frozenset({FileType.API}),
    ),
    (
        frozenset({"css", "style", "styles", "styling", "theme", "color", "colors", "tailwind"}),
        "style",
        frozenset({FileType.STYLE}),
    ),
    (
        frozenset({"test", "tests", "spec", "coverage", "jest", "vitest"}),
        "test",
        frozenset({FileType.TEST}),
    ),
    (
        frozenset({"config", "configuration", "settings", "env", "environment"}),
        "config",
        frozenset({FileType.CONFIG}),
    ),
)

DEFAULT_FILE_TYPES: FrozenSet[FileType] = frozenset({FileType.COMPONENT})


def parse_intent(text: str) -> Intent:
    """Parse ``text`` once into an action, targets, keywords and file types."""
    action = _detect_action(text)
    target_path = _extract_target_path(text)
    component_name = _extract_component_name(text)
    keywords, file_types = _extract_keywords(text, target_path)
    return Intent(
        action=action,
        keywords=frozenset(keywords),
        file_types=frozenset(file_types) or DEFAULT_FILE_TYPES,
        complexity=_estimate_complexity(action, keywords),
        target_path=target_path,
        component_name=component_name,
        raw=text,
    )


def _detect_action(text: str) -> Action:
    for action, pattern in ACTION_PATTERNS:
        if pattern.search(text):
            return action
    return Action.UPDATE


def _extract_target_path(text: str) -> Optional[str]:
    match = _PATH_TOKEN.search(text)
    if match is None:
        return None
    return match.group(1).strip(".").lstrip("/") or None


def _extract_component_name(text: str) -> Optional[str]:
    pascal = _PASCAL_CASE.search(text)
    if pascal:
        return pascal.group(1)
    named = _NAMED_COMPONENT.search(text)
    if named and named.group(1).lower() not in STOP_WORDS:
        word = named.group(1)
        return word[:1].upper() + word[1:]
    return None


def _extract_keywords(text: str, target_path: Optional[str]) -> Tuple[Set[str], Set[FileType]]:
    scrubbed = text.replace(target_path, " ") if target_path else text
    tokens: List[str] = [token.lower() for token in _TOKEN.findall(scrubbed)]

    keywords: Set[str] = {
        token for token in tokens if len(token) >= 2 and token not in STOP_WORDS
    }
    if target_path:
        stem = target_path.rsplit("/", 1)[-1].split(".", 1)[0].lower()
        if len(stem) >= 2 and stem != "index":
            keywords.add(stem)

    file_types: Set[FileType] = set()
    seen_tokens = set(tokens)
    for triggers, tag, implied in DOMAIN_TRIGGERS:
        if triggers & seen_tokens:
            keywords.add(tag)
            file_types.update(implied)
    return keywords, file_types


def _estimate_complexity(action: Action, keywords: Set[str]) -> Complexity:
    if action is Action.REFACTOR or len(keywords) >= 8:
        return Complexity.COMPLEX
    if len(keywords) >= 4:
        return Complexity.MODERATE
    return Complexity.SIMPLE


__all__ = ["ACTION_PATTERNS", "DOMAIN_TRIGGERS", "STOP_WORDS", "parse_intent"]
