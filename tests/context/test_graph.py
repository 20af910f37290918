"""Tests for the dependency graph and its traversal."""

from __future__ import annotations

import gc
from datetime import datetime, timezone
from typing import Dict

from repolens.context.graph import DependencyGraph, GraphCache, expand_dependencies
from repolens.models import FileRecord, RepoSnapshot


def _snapshot(files: Dict[str, str]) -> RepoSnapshot:
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    records = []
    for path in sorted(files):
        name = path.rsplit("/", 1)[-1]
        extension = "." + name.rsplit(".", 1)[-1] if "." in name else ""
        records.append(
            FileRecord(
                path=path,
                content=files[path],
                size_bytes=len(files[path]),
                modified_at=stamp,
                extension=extension,
            )
        )
    return RepoSnapshot(root="/repo", files=tuple(records))


def test_build_resolves_script_specifiers() -> None:
    snapshot = _snapshot(
        {
            "src/App.tsx": (
                "import React from 'react';\n"
                "import { Button } from './components/Button';\n"
                "import './styles/app.css';\n"
                "export { theme } from \"./theme\";\n"
                "const api = require('./api');\n"
                "const Lazy = React.lazy(() => import('./pages/Lazy'));\n"
                "import { cn } from '@/lib/cn';\n"
            ),
            "src/components/Button.tsx": "export const Button = () => null;\n",
            "src/styles/app.css": "body {}\n",
            "src/theme.ts": "export const theme = {};\n",
            "src/api/index.js": "module.exports = {};\n",
            "src/pages/Lazy.jsx": "export default () => null;\n",
            "src/lib/cn.ts": "export const cn = () => '';\n",
        }
    )

    graph = DependencyGraph.build(snapshot)

    assert graph.imports_of("src/App.tsx") == [
        "src/api/index.js",
        "src/components/Button.tsx",
        "src/lib/cn.ts",
        "src/pages/Lazy.jsx",
        "src/styles/app.css",
        "src/theme.ts",
    ]
    assert graph.importers_of("src/theme.ts") == ["src/App.tsx"]
    assert graph.imports_of("src/theme.ts") == []


def test_build_ignores_packages_and_missing_files() -> None:
    snapshot = _snapshot(
        {
            "index.js": "import x from 'lodash';\nimport y from './missing';\nimport z from '../outside';\n",
        }
    )

    assert DependencyGraph.build(snapshot).edges == {}


def test_build_resolves_python_imports() -> None:
    snapshot = _snapshot(
        {
            "app/__init__.py": "",
            "app/main.py": "from .models import User\nfrom . import utils\nimport app.config\n",
            "app/models.py": "from app.db import session\n",
            "app/utils.py": "import os\n",
            "app/config.py": "DEBUG = True\n",
            "app/db.py": "session = None\n",
        }
    )

    graph = DependencyGraph.build(snapshot)

    assert graph.imports_of("app/main.py") == [
        "app/__init__.py",
        "app/config.py",
        "app/models.py",
        "app/utils.py",
    ]
    assert graph.imports_of("app/models.py") == ["app/db.py"]
    assert graph.imports_of("app/utils.py") == []


def test_expand_dependencies_terminates_on_cycles() -> None:
    graph = DependencyGraph(edges={"A": frozenset({"B"}), "B": frozenset({"A"})})

    assert expand_dependencies(graph, "A", depth=2) == ["A", "B"]
    assert set(expand_dependencies(graph, "A", depth=10)) == {"A", "B"}


def test_expand_dependencies_respects_depth() -> None:
    graph = DependencyGraph(
        edges={
            "a": frozenset({"b", "c"}),
            "b": frozenset({"d"}),
            "d": frozenset({"e"}),
        }
    )

    assert expand_dependencies(graph, "a", depth=0) == ["a"]
    assert expand_dependencies(graph, "a", depth=1) == ["a", "b", "c"]
    assert expand_dependencies(graph, "a", depth=2) == ["a", "b", "c", "d"]
    assert expand_dependencies(graph, "a", depth=3) == ["a", "b", "c", "d", "e"]


def test_expand_dependencies_from_isolated_node() -> None:
    assert expand_dependencies(DependencyGraph(), "solo.ts") == ["solo.ts"]


def test_graph_cache_reuses_and_releases_graphs() -> None:
    cache = GraphCache()
    snapshot = _snapshot({"a.ts": "import './b';\n", "b.ts": "export {};\n"})

    first = cache.get(snapshot)
    assert cache.get(snapshot) is first
    assert first.imports_of("a.ts") == ["b.ts"]
    assert len(cache) == 1

    del snapshot
    gc.collect()

    assert len(cache) == 0
