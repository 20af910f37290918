"""Glob matching with ``**`` and brace expansion over POSIX relative paths."""

from __future__ import annotations

import re
from typing import Iterable, List, Pattern, Sequence, Tuple


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` groups, e.g. ``*.{js,ts}`` -> ``*.js``, ``*.ts``."""
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    depth = 0
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                end = index
                break
    else:
        return [pattern]

    head, body, tail = pattern[:start], pattern[start + 1 : end], pattern[end + 1 :]
    options: List[str] = []
    current: List[str] = []
    depth = 0
    for char in body:
        if char == "," and depth == 0:
            options.append("".join(current))
            current = []
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current.append(char)
    options.append("".join(current))

    expanded: List[str] = []
    for option in options:
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def translate(pattern: str) -> str:
    """Translate one brace-free glob into an anchored regular expression."""
    parts: List[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("/**", index) and index + 3 == length:
            parts.append("/.+")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return "^" + "".join(parts) + "$"


def compile_globs(patterns: Iterable[str]) -> Tuple[Pattern[str], ...]:
    compiled: List[Pattern[str]] = []
    for pattern in patterns:
        for expanded in expand_braces(pattern.strip().lstrip("/")):
            if expanded:
                compiled.append(re.compile(translate(expanded)))
    return tuple(compiled)


def matches_any(path: str, compiled: Sequence[Pattern[str]]) -> bool:
    return any(regex.match(path) for regex in compiled)


def glob_match(path: str, pattern: str) -> bool:
    return matches_any(path, compile_globs([pattern]))


__all__ = ["compile_globs", "expand_braces", "glob_match", "matches_any", "translate"]
