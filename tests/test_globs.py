"""Tests for repolens.globs."""

from __future__ import annotations

import pytest

from repolens.globs import expand_braces, glob_match


def test_expand_braces_handles_nested_groups() -> None:
    assert expand_braces("**/*.{js,ts}") == ["**/*.js", "**/*.ts"]
    assert expand_braces("a.{b,{c,d}}") == ["a.b", "a.c", "a.d"]
    assert expand_braces("plain") == ["plain"]


@pytest.mark.parametrize(
    ("path", "pattern", "expected"),
    [
        ("README.md", "**/*.md", True),
        ("docs/guide/intro.md", "**/*.md", True),
        ("src/components/Button.tsx", "**/components/**/*.{jsx,tsx}", True),
        ("components/Button.tsx", "**/components/**/*.{jsx,tsx}", True),
        ("src/Button.tsx", "**/components/**/*.{jsx,tsx}", False),
        ("src/test/helpers.js", "**/test/**", True),
        ("test", "**/test/**", False),
        ("src/app.ts", "*.ts", False),
        ("app.ts", "*.ts", True),
        ("tailwind.config.ts", "tailwind.config.{js,ts}", True),
        ("src/a.spec.tsx", "**/*.{test,spec}.{js,jsx,ts,tsx}", True),
    ],
)
def test_glob_match(path: str, pattern: str, expected: bool) -> None:
    assert glob_match(path, pattern) is expected
