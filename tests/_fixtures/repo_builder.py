"""Helper utilities for constructing temporary repositories in tests."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime
from pathlib import Path
from typing import Mapping

from repolens.models import RepoSnapshot
from repolens.repo_scanner import RepoScanner


class RepoBuilder:
    """Utility for writing files into a throwaway repository and rescanning it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()
        self._scanner = RepoScanner()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_bytes(self, relative: str, payload: bytes) -> None:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)

    def touch(self, relative: str, when: datetime) -> None:
        """Set the modification time of an existing file."""
        timestamp = when.timestamp()
        os.utime(self.root / relative, (timestamp, timestamp))

    def scan(self) -> RepoSnapshot:
        """Return a fresh snapshot of the repository contents."""
        return self._scanner.scan(str(self.root))

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


__all__ = ["RepoBuilder"]
