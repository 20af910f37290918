"""Static import graph over a snapshot and bounded traversal of it."""

from __future__ import annotations

import posixpath
import re
import weakref
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from ..logging import get_logger
from ..models import FileRecord, RepoSnapshot

logger = get_logger("context.graph")

SCRIPT_EXTENSIONS: Tuple[str, ...] = (
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".vue", ".svelte",
)
_RESOLVE_EXTENSIONS: Tuple[str, ...] = SCRIPT_EXTENSIONS + (".json", ".css", ".scss")

_SCRIPT_IMPORTS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"""\bimport\s+(?:type\s+)?[^'"`;]*?\bfrom\s*['"]([^'"]+)['"]"""),
    re.compile(r"""\bimport\s*['"]([^'"]+)['"]"""),
    re.compile(r"""\bexport\s+[^'"`;]*?\bfrom\s*['"]([^'"]+)['"]"""),
    re.compile(r"""\brequire\s*\(\s*['"]([^'"]+)['"]\s*\)"""),
    re.compile(r"""\bimport\s*\(\s*['"]([^'"]+)['"]\s*\)"""),
)
_PY_FROM = re.compile(r"^\s*from\s+(\.*)([\w.]*)\s+import\s+(.+)$", re.MULTILINE)
_PY_IMPORT = re.compile(r"^\s*import\s+([\w.]+(?:\s*,\s*[\w.]+)*)", re.MULTILINE)

# Path aliases commonly configured in bundlers and tsconfig.
_ALIAS_PREFIXES: Tuple[Tuple[str, str], ...] = (("@/", "src/"), ("~/", "src/"))


@dataclass(frozen=True)
class DependencyGraph:
    """Mapping of snapshot path to the snapshot paths it imports."""

    edges: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    @classmethod
    def build(cls, snapshot: RepoSnapshot) -> "DependencyGraph":
        known = set(snapshot.paths())
        edges: Dict[str, FrozenSet[str]] = {}
        for record in snapshot.files:
            if not record.content:
                continue
            if record.extension in SCRIPT_EXTENSIONS:
                targets = _script_targets(record, known)
            elif record.extension == ".py":
                targets = _python_targets(record, known)
            else:
                continue
            targets.discard(record.path)
            if targets:
                edges[record.path] = frozenset(targets)
        logger.debug(
            "Built dependency graph with %d nodes and %d edges",
            len(edges),
            sum(len(targets) for targets in edges.values()),
        )
        return cls(edges=edges)

    def imports_of(self, path: str) -> List[str]:
        return sorted(self.edges.get(path, ()))

    def importers_of(self, path: str) -> List[str]:
        return sorted(source for source, targets in self.edges.items() if path in targets)


class GraphCache:
    """Holds one graph per live snapshot; entries vanish with their snapshot."""

    def __init__(self) -> None:
        self._graphs: Dict[int, Tuple[weakref.ref, DependencyGraph]] = {}

    def get(self, snapshot: RepoSnapshot) -> DependencyGraph:
        key = id(snapshot)
        entry = self._graphs.get(key)
        if entry is not None and entry[0]() is snapshot:
            return entry[1]
        graph = DependencyGraph.build(snapshot)
        self._graphs[key] = (weakref.ref(snapshot, self._evictor(key)), graph)
        return graph

    def __len__(self) -> int:
        return len(self._graphs)

    def _evictor(self, key: int):
        graphs = self._graphs

        def _evict(_: weakref.ref) -> None:
            graphs.pop(key, None)

        return _evict


def expand_dependencies(graph: DependencyGraph, start: str, depth: int = 2) -> List[str]:
    """Breadth-first walk over imports from ``start``, at most ``depth`` hops.

    Returns the visited nodes in visit order, ``start`` first. Each node is
    visited once, so cycles terminate.
    """
    visited: List[str] = [start]
    seen: Set[str] = {start}
    queue: Deque[Tuple[str, int]] = deque([(start, 0)])
    while queue:
        node, distance = queue.popleft()
        if distance >= depth:
            continue
        for neighbour in graph.imports_of(node):
            if neighbour in seen:
                continue
            seen.add(neighbour)
            visited.append(neighbour)
            queue.append((neighbour, distance + 1))
    return visited


def _script_targets(record: FileRecord, known: Set[str]) -> Set[str]:
    targets: Set[str] = set()
    for pattern in _SCRIPT_IMPORTS:
        for specifier in pattern.findall(record.content):
            resolved = _resolve_script(record.path, specifier, known)
            if resolved:
                targets.add(resolved)
    return targets


def _resolve_script(importer: str, specifier: str, known: Set[str]) -> Optional[str]:
    if specifier.startswith("."):
        base = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))
    else:
        base = None
        for prefix, replacement in _ALIAS_PREFIXES:
            if specifier.startswith(prefix):
                base = posixpath.normpath(replacement + specifier[len(prefix):])
                break
        if base is None:
            # Bare package specifiers live outside the snapshot.
            return None
    if base.startswith(".."):
        return None
    return _first_known(_script_candidates(base), known)


def _script_candidates(base: str) -> Iterable[str]:
    yield base
    for extension in _RESOLVE_EXTENSIONS:
        yield base + extension
    for extension in SCRIPT_EXTENSIONS:
        yield f"{base}/index{extension}"


def _python_targets(record: FileRecord, known: Set[str]) -> Set[str]:
    targets: Set[str] = set()
    package = posixpath.dirname(record.path)
    for dots, module, names in _PY_FROM.findall(record.content):
        if dots:
            anchor = package
            for _ in range(len(dots) - 1):
                anchor = posixpath.dirname(anchor)
            base = posixpath.join(anchor, module.replace(".", "/")) if module else anchor
            roots: Tuple[str, ...] = ("",)
        else:
            base = module.replace(".", "/")
            roots = ("", "src/")
        resolved = _resolve_python(base, roots, known)
        if resolved:
            targets.add(resolved)
        # ``from pkg import mod`` may name submodules rather than attributes.
        for name in names.strip("() ").split(","):
            name = name.strip().split(" ", 1)[0]
            if name and name != "*":
                submodule = _resolve_python(posixpath.join(base, name), roots, known)
                if submodule:
                    targets.add(submodule)
    for group in _PY_IMPORT.findall(record.content):
        for module in group.split(","):
            resolved = _resolve_python(module.strip().replace(".", "/"), ("", "src/"), known)
            if resolved:
                targets.add(resolved)
    return targets


def _resolve_python(base: str, roots: Tuple[str, ...], known: Set[str]) -> Optional[str]:
    base = posixpath.normpath(base) if base else base
    if not base or base == "." or base.startswith(".."):
        return None
    candidates = []
    for root in roots:
        candidates.append(f"{root}{base}.py")
        candidates.append(f"{root}{base}/__init__.py")
    return _first_known(candidates, known)


def _first_known(candidates: Iterable[str], known: Set[str]) -> Optional[str]:
    for candidate in candidates:
        if candidate in known:
            return candidate
    return None


__all__ = ["DependencyGraph", "GraphCache", "SCRIPT_EXTENSIONS", "expand_dependencies"]
