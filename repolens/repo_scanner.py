"""Repository scanning and snapshot building utilities."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

from .config import ConfigError, load_config
from .globs import compile_globs, matches_any
from .logging import get_logger
from .models import FileRecord, RepoSnapshot, SkippedFile

# Build output and dependency-manager directories are never scanned.
_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "bower_components",
    "jspm_packages",
    "vendor",
    "dist",
    "build",
    "out",
    "target",
    "coverage",
    ".next",
    ".nuxt",
    ".turbo",
    ".cache",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
    ".idea",
    ".repolens",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

# Recorded with empty content; only their presence matters.
_BINARY_SUFFIXES = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".bmp",
    ".ico",
    ".webp",
    ".pdf",
    ".fig",
    ".sketch",
    ".psd",
    ".xd",
    ".zip",
    ".gz",
    ".tar",
    ".jar",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".mp4",
    ".mp3",
}

logger = get_logger("scanner")


class ScanIOError(OSError):
    """Raised when the repository root cannot be read."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .repolens.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []

    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _parse_config_excludes(root: Path) -> List[IgnoreRule]:
    try:
        config = load_config(root)
    except ConfigError as exc:
        logger.warning("Ignoring unreadable configuration: %s", exc)
        return []

    rules: List[IgnoreRule] = []
    for pattern in config.scanner.exclude:
        rule = _build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def _load_ignore_rules(root: Path) -> List[IgnoreRule]:
    rules = _parse_gitignore(root / ".gitignore")
    rules.extend(_parse_config_excludes(root))
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _extension(name: str) -> str:
    if name.startswith(".") and name.count(".") == 1:
        return ""
    _, dot, suffix = name.rpartition(".")
    return f".{suffix.lower()}" if dot else ""


class RepoScanner:
    """Walks the repository to produce an immutable snapshot."""

    def __init__(
        self,
        *,
        max_depth: int = 64,
        max_file_bytes: int = 1_000_000,
        workers: int = 8,
    ) -> None:
        self.max_depth = max_depth
        self.max_file_bytes = max_file_bytes
        self.workers = max(1, workers)

    def scan(
        self,
        root: str,
        include: Sequence[str] | None = None,
        exclude: Sequence[str] | None = None,
    ) -> RepoSnapshot:
        """Return a snapshot of every readable file under ``root``."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise ScanIOError(root, "Repository path not found")
        if not root_path.is_dir():
            raise ScanIOError(root, "Repository path is not a directory")

        rules = _load_ignore_rules(root_path)
        found, skipped = self._walk(root_path, rules)

        include_globs = compile_globs(include or ())
        exclude_globs = compile_globs(exclude or ())
        selected = [
            (rel_path, path)
            for rel_path, path in found
            if (not include_globs or matches_any(rel_path, include_globs))
            and not matches_any(rel_path, exclude_globs)
        ]

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            loaded = list(pool.map(self._load, selected))

        files: List[FileRecord] = []
        for item in loaded:
            if isinstance(item, SkippedFile):
                logger.debug("Skipped %s (%s)", item.path, item.reason)
                skipped.append(item)
            else:
                files.append(item)

        if not files:
            logger.warning("No files matched under %s; continuing with an empty snapshot", root_path)
        logger.debug("Scanned %d files (%d skipped) under %s", len(files), len(skipped), root_path)
        return RepoSnapshot(root=str(root_path), files=tuple(files), skipped=tuple(skipped))

    def _walk(
        self, root: Path, rules: Sequence[IgnoreRule]
    ) -> Tuple[List[Tuple[str, Path]], List[SkippedFile]]:
        found: List[Tuple[str, Path]] = []
        skipped: List[SkippedFile] = []
        stack: List[Tuple[Path, str, int]] = [(root, "", 0)]

        while stack:
            directory, rel_dir, depth = stack.pop()
            try:
                with os.scandir(directory) as iterator:
                    entries = sorted(iterator, key=lambda entry: entry.name)
            except OSError as exc:
                if directory == root:
                    raise ScanIOError(str(root), f"Repository path is not readable ({exc.strerror})") from exc
                skipped.append(SkippedFile(path=rel_dir, reason=f"unreadable directory: {exc.strerror}"))
                continue

            subdirs: List[Tuple[Path, str, int]] = []
            for entry in entries:
                rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                    is_file = entry.is_file()
                except OSError as exc:
                    skipped.append(SkippedFile(path=rel_path, reason=f"stat failed: {exc.strerror}"))
                    continue

                if is_dir:
                    if entry.name in _EXCLUDED_DIRS or _should_ignore(rel_path, True, rules):
                        continue
                    if depth + 1 > self.max_depth:
                        logger.debug("Depth limit reached at %s", rel_path)
                        continue
                    subdirs.append((Path(entry.path), rel_path, depth + 1))
                elif is_file:
                    if entry.name in _EXCLUDED_FILES or _should_ignore(rel_path, False, rules):
                        continue
                    found.append((rel_path, Path(entry.path)))

            # Reverse so the stack pops directories alphabetically.
            stack.extend(reversed(subdirs))

        found.sort(key=lambda item: item[0])
        return found, skipped

    def _load(self, item: Tuple[str, Path]) -> Union[FileRecord, SkippedFile]:
        rel_path, path = item
        try:
            stat_result = path.stat()
        except OSError as exc:
            return SkippedFile(path=rel_path, reason=f"stat failed: {exc.strerror}")

        extension = _extension(path.name)
        modified_at = datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc)

        if extension in _BINARY_SUFFIXES:
            content = ""
        elif stat_result.st_size > self.max_file_bytes:
            return SkippedFile(path=rel_path, reason="exceeds max_file_bytes")
        else:
            try:
                content = path.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                return SkippedFile(path=rel_path, reason="not valid UTF-8 text")
            except OSError as exc:
                return SkippedFile(path=rel_path, reason=f"unreadable: {exc.strerror}")

        return FileRecord(
            path=rel_path,
            content=content,
            size_bytes=stat_result.st_size,
            modified_at=modified_at,
            extension=extension,
        )


def render_file_tree(snapshot: RepoSnapshot, max_depth: int = 3) -> str:
    """Render the snapshot's paths as a box-drawing tree, hidden entries omitted."""
    tree: Dict[str, dict] = {}
    for path in snapshot.paths():
        parts = path.split("/")
        if any(part.startswith(".") for part in parts):
            continue
        node = tree
        for part in parts:
            node = node.setdefault(part, {})

    lines = [Path(snapshot.root).name or snapshot.root]
    # (name, children, prefix, is_last, depth) frames, expanded depth-first.
    pending: List[Tuple[str, Dict[str, dict], str, bool, int]] = []
    _push_children(pending, tree, "", 0)

    while pending:
        name, children, prefix, is_last, depth = pending.pop()
        lines.append(f"{prefix}{'└── ' if is_last else '├── '}{name}")
        if children and depth + 1 <= max_depth:
            child_prefix = prefix + ("    " if is_last else "│   ")
            _push_children(pending, children, child_prefix, depth + 1)

    return "\n".join(lines)


def _push_children(
    pending: List[Tuple[str, Dict[str, dict], str, bool, int]],
    children: Dict[str, dict],
    prefix: str,
    depth: int,
) -> None:
    ordered = sorted(children.items())
    for index in range(len(ordered) - 1, -1, -1):
        name, grandchildren = ordered[index]
        pending.append((name, grandchildren, prefix, index == len(ordered) - 1, depth))


__all__ = ["RepoScanner", "ScanIOError", "render_file_tree"]
