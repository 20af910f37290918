"""Tests for repolens.repo_scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from repolens.repo_scanner import RepoScanner, ScanIOError, render_file_tree


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_scan_builds_sorted_snapshot(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()

    _write(repo_root / "src" / "app.tsx", "export const App = () => null;\n")
    _write(repo_root / "README.md", "# Demo\n")
    _write(repo_root / "src" / "components" / "Button.tsx", "export {}\n")
    _write(repo_root / "node_modules" / "react" / "index.js", "module.exports = {}\n")
    _write(repo_root / ".venv" / "should_ignore.py", "print('nope')\n")
    _write(repo_root / "dist" / "bundle.js", "var x;\n")

    snapshot = RepoScanner().scan(str(repo_root))

    assert snapshot.root == str(repo_root.resolve())
    assert snapshot.paths() == ["README.md", "src/app.tsx", "src/components/Button.tsx"]
    record = snapshot.get("src/app.tsx")
    assert record is not None
    assert record.extension == ".tsx"
    assert record.content.startswith("export const App")
    assert record.size_bytes == len("export const App = () => null;\n")
    assert record.modified_at.tzinfo is not None


def test_scan_rejects_missing_directory(tmp_path: Path) -> None:
    missing = tmp_path / "missing"

    with pytest.raises(ScanIOError) as excinfo:
        RepoScanner().scan(str(missing))

    assert excinfo.value.path == str(missing)
    assert isinstance(excinfo.value, OSError)


def test_scan_rejects_file_root(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("hello", encoding="utf-8")

    with pytest.raises(ScanIOError):
        RepoScanner().scan(str(target))


def test_scan_respects_gitignore(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()

    _write(repo_root / ".gitignore", "generated/\n*.log\n")
    _write(repo_root / "src" / "main.py", "print('ok')\n")
    _write(repo_root / "generated" / "artifact.txt", "data\n")
    _write(repo_root / "notes.log", "ignore me\n")

    paths = set(RepoScanner().scan(str(repo_root)).paths())

    assert "src/main.py" in paths
    assert "generated/artifact.txt" not in paths
    assert "notes.log" not in paths


def test_scan_respects_config_excludes(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()

    _write(repo_root / ".repolens.yml", "exclude:\n  - fixtures/\n  - '*.generated'\n")
    _write(repo_root / "src" / "main.py", "print('ok')\n")
    _write(repo_root / "fixtures" / "sample.json", "{}\n")
    _write(repo_root / "report.generated", "generated output\n")

    paths = set(RepoScanner().scan(str(repo_root)).paths())

    assert "src/main.py" in paths
    assert "fixtures/sample.json" not in paths
    assert "report.generated" not in paths


def test_scan_applies_include_and_exclude_globs(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write(repo_root / "src" / "a.ts", "a\n")
    _write(repo_root / "src" / "a.test.ts", "t\n")
    _write(repo_root / "docs" / "guide.md", "# Guide\n")

    snapshot = RepoScanner().scan(
        str(repo_root), include=["src/**"], exclude=["**/*.test.*"]
    )

    assert snapshot.paths() == ["src/a.ts"]


def test_scan_records_skipped_files(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write(repo_root / "ok.py", "x = 1\n")
    _write(repo_root / "big.txt", "x" * 64)
    (repo_root / "latin1.txt").write_bytes(b"caf\xe9\n")
    (repo_root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")

    snapshot = RepoScanner(max_file_bytes=32).scan(str(repo_root))

    assert snapshot.paths() == ["logo.png", "ok.py"]
    assert snapshot.get("logo.png").content == ""
    reasons = {item.path: item.reason for item in snapshot.skipped}
    assert reasons["big.txt"] == "exceeds max_file_bytes"
    assert reasons["latin1.txt"] == "not valid UTF-8 text"


def test_scan_stops_at_max_depth(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write(repo_root / "a" / "shallow.py", "x = 1\n")
    _write(repo_root / "a" / "b" / "c" / "deep.py", "x = 2\n")

    snapshot = RepoScanner(max_depth=2).scan(str(repo_root))

    assert snapshot.has("a/shallow.py")
    assert not snapshot.has("a/b/c/deep.py")


def test_scan_of_empty_repository_returns_empty_snapshot(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()

    snapshot = RepoScanner().scan(str(repo_root))

    assert snapshot.is_empty
    assert snapshot.skipped == ()


def test_scan_is_deterministic(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    for index in range(30):
        _write(repo_root / f"pkg{index % 3}" / f"mod{index}.py", f"value = {index}\n")

    first = RepoScanner(workers=4).scan(str(repo_root))
    second = RepoScanner(workers=1).scan(str(repo_root))

    assert first == second
    assert first.paths() == sorted(first.paths())


def test_render_file_tree_omits_hidden_entries(repo_builder) -> None:
    repo_builder.write(
        {
            "src/components/Button.tsx": "export {}\n",
            "src/index.ts": "export {}\n",
            ".github/workflows/ci.yml": "name: CI\n",
            "README.md": "# Demo\n",
        }
    )

    tree = render_file_tree(repo_builder.scan())

    assert tree.splitlines() == [
        "repo",
        "├── README.md",
        "└── src",
        "    ├── components",
        "    │   └── Button.tsx",
        "    └── index.ts",
    ]


def test_render_file_tree_respects_depth(repo_builder) -> None:
    repo_builder.write({"a/b/c.txt": "x\n"})

    tree = render_file_tree(repo_builder.scan(), max_depth=1)

    assert tree.splitlines() == ["repo", "└── a", "    └── b"]
