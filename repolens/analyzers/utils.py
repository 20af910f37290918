"""Shared helper utilities for analyzer implementations."""

from __future__ import annotations

import json
import re
import tomllib
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..models import PackageManager, RepoSnapshot

# Patterns shared by several analyzers.
CODE_FILE_GLOBS: Tuple[str, ...] = (
    "**/*.{js,jsx,ts,tsx}",
    "**/*.{py,java,go,rs}",
    "**/*.{html,css,scss,sass}",
    "package.json",
    "requirements.txt",
    "Cargo.toml",
    "go.mod",
)

DOC_FILE_GLOBS: Tuple[str, ...] = (
    "**/README.md",
    "**/requirements/**/*.md",
    "**/docs/**/*.md",
    "**/design/**/*",
    "**/PRD.md",
    "**/user-stories.md",
    "**/technical-spec.md",
)

TEST_SOURCE_IGNORE: Tuple[str, ...] = ("**/*.test.*", "**/*.spec.*")


def has_code(snapshot: RepoSnapshot) -> bool:
    return bool(snapshot.match(CODE_FILE_GLOBS))


def has_docs(snapshot: RepoSnapshot) -> bool:
    return bool(snapshot.match(DOC_FILE_GLOBS))


# Manifest helpers

# Optional project descriptor a repository may ship to state its own stack.
PROJECT_DESCRIPTOR = "repolens.config.json"


def load_package_json(snapshot: RepoSnapshot) -> Optional[Dict[str, Any]]:
    """Return the parsed root package.json, or None when absent or malformed."""
    return _load_json_mapping(snapshot, "package.json")


def load_project_descriptor(snapshot: RepoSnapshot) -> Optional[Dict[str, Any]]:
    """Return the parsed root ``repolens.config.json``, or None when absent or malformed."""
    return _load_json_mapping(snapshot, PROJECT_DESCRIPTOR)


def _load_json_mapping(snapshot: RepoSnapshot, path: str) -> Optional[Dict[str, Any]]:
    record = snapshot.get(path)
    if record is None:
        return None
    try:
        data = json.loads(record.content)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def merged_node_dependencies(package_json: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Merge runtime and dev dependencies; dev entries win on conflict."""
    if not package_json:
        return {}
    merged: Dict[str, str] = {}
    for key in ("dependencies", "devDependencies"):
        deps = package_json.get(key)
        if isinstance(deps, dict):
            merged.update({str(name): str(version) for name, version in deps.items()})
    return merged


def detect_node_package_manager(snapshot: RepoSnapshot) -> PackageManager:
    """Infer the preferred Node package manager based on lockfiles."""
    if snapshot.has("pnpm-lock.yaml"):
        return PackageManager.PNPM
    if snapshot.has("yarn.lock"):
        return PackageManager.YARN
    return PackageManager.NPM


# Python manifest helpers


def load_python_dependencies(snapshot: RepoSnapshot) -> List[str]:
    """Collect Python dependencies from requirements.txt and pyproject.toml."""
    deps: Set[str] = set()

    requirements = snapshot.get("requirements.txt")
    if requirements is not None:
        deps.update(_parse_requirements(requirements.content))

    pyproject = snapshot.get("pyproject.toml")
    if pyproject is not None:
        deps.update(_parse_pyproject(pyproject.content))

    return sorted(deps)


def _parse_requirements(text: str) -> List[str]:
    packages: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        name = re.split(r"[<>=!~;\[ ]", stripped, maxsplit=1)[0].strip()
        if name:
            packages.append(name)
    return packages


def _parse_pyproject(text: str) -> List[str]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        return []

    dependencies: List[Any] = []
    project = data.get("project")
    if isinstance(project, dict):
        dependencies.extend(project.get("dependencies", []) or [])
        optional = project.get("optional-dependencies", {}) or {}
        for values in optional.values():
            dependencies.extend(values or [])

    tool = data.get("tool")
    poetry = tool.get("poetry", {}) if isinstance(tool, dict) else {}
    if isinstance(poetry, dict):
        poetry_deps = poetry.get("dependencies", {}) or {}
        dependencies.extend(poetry_deps.keys())

    packages: Set[str] = set()
    for dep in dependencies:
        if isinstance(dep, str):
            name = re.split(r"[<>=!~;\[ ]", dep, maxsplit=1)[0].strip()
            if name and name.lower() != "python":
                packages.add(name)
    return sorted(packages)


# Framework heuristics. Order is significant: the first matching row wins.

NODE_FRAMEWORKS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("next",), "Next.js"),
    (("gatsby",), "Gatsby"),
    (("@remix-run/react",), "Remix"),
    (("react", "react-scripts"), "Create React App"),
    (("react", "vite"), "Vite + React"),
    (("react",), "React"),
    (("vue",), "Vue"),
    (("svelte",), "Svelte"),
    (("@angular/core",), "Angular"),
    (("express",), "Express"),
    (("fastify",), "Fastify"),
    (("koa",), "Koa"),
)

PYTHON_FRAMEWORKS: Tuple[Tuple[str, str], ...] = (
    ("fastapi", "FastAPI"),
    ("django", "Django"),
    ("flask", "Flask"),
)


def detect_framework_label(
    node_dependencies: Dict[str, str], python_dependencies: Sequence[str]
) -> str:
    for required, label in NODE_FRAMEWORKS:
        if all(name in node_dependencies for name in required):
            return label
    lowered = {dep.lower() for dep in python_dependencies}
    for name, label in PYTHON_FRAMEWORKS:
        if name in lowered:
            return label
    return "Unknown"


def detect_framework_id(snapshot: RepoSnapshot, package_json: Optional[Dict[str, Any]]) -> str:
    """Return the short framework identifier used to choose layout conventions."""
    if package_json is None:
        if snapshot.has("requirements.txt") or snapshot.has("pyproject.toml"):
            return "python"
        return "unknown"

    deps = merged_node_dependencies(package_json)
    if "next" in deps:
        return "nextjs"
    if "react" in deps and "react-scripts" in deps:
        return "create-react-app"
    if "react" in deps and "vite" in deps:
        return "vite-react"
    if "react" in deps and "gatsby" in deps:
        return "gatsby"
    if "react" in deps:
        return "react"
    if "nuxt" in deps:
        return "nuxt"
    if "vue" in deps:
        return "vue"
    if "@angular/core" in deps:
        return "angular"
    if "@sveltejs/kit" in deps:
        return "sveltekit"
    if "svelte" in deps:
        return "svelte"
    if "express" in deps:
        return "express"
    if snapshot.has("requirements.txt"):
        return "python"
    return "unknown"


__all__ = [
    "CODE_FILE_GLOBS",
    "DOC_FILE_GLOBS",
    "NODE_FRAMEWORKS",
    "PROJECT_DESCRIPTOR",
    "PYTHON_FRAMEWORKS",
    "TEST_SOURCE_IGNORE",
    "detect_framework_id",
    "detect_framework_label",
    "detect_node_package_manager",
    "has_code",
    "has_docs",
    "load_package_json",
    "load_project_descriptor",
    "load_python_dependencies",
    "merged_node_dependencies",
]
