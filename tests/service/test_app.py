"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest
from fastapi.testclient import TestClient

from repolens.orchestrator import ContextOptions, Orchestrator
from repolens.service import create_app


class _RecordingOrchestrator(Orchestrator):
    def __init__(self) -> None:
        super().__init__()
        self.context_calls: List[ContextOptions] = []

    def run_context(self, path, intent, options=None):
        self.context_calls.append(options)
        return super().run_context(path, intent, options)


@pytest.fixture
def orchestrator() -> _RecordingOrchestrator:
    return _RecordingOrchestrator()


@pytest.fixture
def client(orchestrator: _RecordingOrchestrator) -> TestClient:
    return TestClient(create_app(lambda: orchestrator))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_analyze_endpoint(client: TestClient, repo_builder) -> None:
    repo_builder.write(
        {
            "README.md": "# Shop\n",
            "requirements/PRD.md": "## Features\n- Login (must)\n- Search\n",
        }
    )

    response = client.post("/analyze", json={"path": str(repo_builder.path())})

    assert response.status_code == 200
    data = response.json()
    assert data["classification"] == "requirements-only"
    assert [feature["name"] for feature in data["features"]] == ["Login (must)", "Search"]
    assert data["features"][0]["priority"] == "high"
    assert data["improvements"] == []


def test_context_endpoint(
    client: TestClient, orchestrator: _RecordingOrchestrator, repo_builder
) -> None:
    repo_builder.write(
        {
            "src/components/LoginForm.tsx": "export const LoginForm = () => 'login';\n",
            "src/lib/other.ts": "export const other = 1;\n",
        }
    )

    response = client.post(
        "/context",
        json={
            "path": str(repo_builder.path()),
            "intent": "fix the login form",
            "max_files": 5,
            "include_related": True,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert [candidate["path"] for candidate in data["candidates"]] == ["src/components/LoginForm.tsx"]
    assert data["max_files"] == 5
    assert data["text"].startswith("# Context for: fix the login form")
    assert orchestrator.context_calls == [
        ContextOptions(max_files=5, include_related=True)
    ]


def test_missing_repository_returns_404(client: TestClient, tmp_path: Path) -> None:
    missing = tmp_path / "missing"

    response = client.post("/analyze", json={"path": str(missing)})

    assert response.status_code == 404
    assert response.json()["path"] == str(missing)


def test_empty_intent_is_rejected(client: TestClient, repo_builder) -> None:
    response = client.post("/context", json={"path": str(repo_builder.path()), "intent": ""})
    assert response.status_code == 422


def test_non_positive_budget_is_rejected(client: TestClient, repo_builder) -> None:
    response = client.post(
        "/context",
        json={"path": str(repo_builder.path()), "intent": "fix login", "max_tokens": 0},
    )
    assert response.status_code == 422
