"""Analyzer that maps where components, pages, routes, styles and tests live."""

from __future__ import annotations

from typing import Dict, List, Tuple

from .base import Analyzer
from .utils import TEST_SOURCE_IGNORE, detect_framework_id, load_package_json
from ..models import CodebaseLayout, RepoSnapshot

_COMPONENT_GLOBS: Tuple[str, ...] = (
    "**/components/**/*.{jsx,tsx,js,ts}",
    "**/src/components/**/*.{jsx,tsx,js,ts}",
    "**/app/components/**/*.{jsx,tsx,js,ts}",
)

_PAGE_GLOBS: Dict[str, Tuple[str, ...]] = {
    "nextjs": (
        "pages/**/*.{jsx,tsx,js,ts}",
        "app/**/page.{jsx,tsx,js,ts}",
        "src/pages/**/*.{jsx,tsx,js,ts}",
        "src/app/**/page.{jsx,tsx,js,ts}",
    ),
    "gatsby": ("src/pages/**/*.{jsx,tsx,js,ts}",),
    "nuxt": ("pages/**/*.vue",),
}
_DEFAULT_PAGE_GLOBS: Tuple[str, ...] = (
    "**/pages/**/*.{jsx,tsx,js,ts}",
    "**/views/**/*.{jsx,tsx,js,ts}",
    "**/routes/**/*.{jsx,tsx,js,ts}",
)

_API_GLOBS: Dict[str, Tuple[str, ...]] = {
    "nextjs": (
        "pages/api/**/*.{js,ts}",
        "app/api/**/route.{js,ts}",
        "src/pages/api/**/*.{js,ts}",
        "src/app/api/**/route.{js,ts}",
    ),
    "express": (
        "routes/**/*.{js,ts}",
        "api/**/*.{js,ts}",
        "src/routes/**/*.{js,ts}",
        "src/api/**/*.{js,ts}",
    ),
}
_DEFAULT_API_GLOBS: Tuple[str, ...] = (
    "**/api/**/*.{js,ts}",
    "**/routes/**/*.{js,ts}",
    "**/endpoints/**/*.{js,ts}",
)

_STYLE_GLOBS: Tuple[str, ...] = ("**/*.{css,scss,sass,less}", "**/styles/**/*")

_TEST_GLOBS: Tuple[str, ...] = (
    "**/*.{test,spec}.{js,jsx,ts,tsx}",
    "**/__tests__/**/*.{js,jsx,ts,tsx}",
    "**/test/**/*.{js,jsx,ts,tsx}",
    "**/tests/**/*.{js,jsx,ts,tsx}",
)

_ENTRY_CANDIDATES: Tuple[str, ...] = (
    "index.js",
    "index.ts",
    "src/index.js",
    "src/index.ts",
    "src/main.js",
    "src/main.ts",
    "app.js",
    "app.ts",
    "server.js",
    "server.ts",
)


class LayoutAnalyzer(Analyzer[CodebaseLayout]):
    """Groups source files by their structural role for the detected framework."""

    name = "layout"

    def analyze(self, snapshot: RepoSnapshot) -> CodebaseLayout:
        package_json = load_package_json(snapshot)
        framework_id = detect_framework_id(snapshot, package_json)

        component_globs = list(_COMPONENT_GLOBS)
        if framework_id in {"vue", "nuxt"}:
            component_globs.append("**/*.vue")

        return CodebaseLayout(
            framework_id=framework_id,
            components=_paths(snapshot, component_globs, TEST_SOURCE_IGNORE),
            pages=_paths(snapshot, _PAGE_GLOBS.get(framework_id, _DEFAULT_PAGE_GLOBS), TEST_SOURCE_IGNORE),
            apis=_paths(snapshot, _API_GLOBS.get(framework_id, _DEFAULT_API_GLOBS), TEST_SOURCE_IGNORE),
            styles=_paths(snapshot, _STYLE_GLOBS, ()),
            tests=_paths(snapshot, _TEST_GLOBS, ()),
            entry_point=self._find_entry_point(snapshot, package_json),
            package_json=package_json,
        )

    @staticmethod
    def _find_entry_point(snapshot: RepoSnapshot, package_json: Dict[str, object] | None) -> str | None:
        if package_json:
            main = package_json.get("main")
            if isinstance(main, str) and main:
                return main
        for candidate in _ENTRY_CANDIDATES:
            if snapshot.has(candidate):
                return candidate
        return None


def _paths(snapshot: RepoSnapshot, patterns, ignore) -> Tuple[str, ...]:
    records = snapshot.match(list(patterns), ignore=list(ignore))
    found: List[str] = [record.path for record in records]
    return tuple(found)


__all__ = ["LayoutAnalyzer"]
