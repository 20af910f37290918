"""Tests for the quality and framework analyzer."""

from __future__ import annotations

import json

import pytest

from repolens.analyzers.quality import QualityAnalyzer
from repolens.models import DesignSystem, PackageManager


def _package(**deps: str) -> str:
    return json.dumps({"name": "demo", "dependencies": deps})


def test_quality_detects_next_with_house_design_system(repo_builder) -> None:
    repo_builder.write(
        {
            "package.json": json.dumps(
                {
                    "dependencies": {"next": "14", "react": "18", "@biokit/design-system": "1"},
                    "devDependencies": {"@mui/material": "5"},
                }
            ),
            "tsconfig.json": "{}",
            "pnpm-lock.yaml": "lockfileVersion: 6\n",
            "src/components/Button.tsx": "export const Button = () => null;\n",
            "src/components/Button.test.tsx": "test('renders', () => {});\n",
        }
    )

    profile = QualityAnalyzer().analyze(repo_builder.scan())

    assert profile.framework == "Next.js"
    assert profile.design_system is DesignSystem.HOUSE
    assert profile.has_typed_source is True
    assert profile.has_tests is True
    assert profile.package_manager is PackageManager.PNPM
    assert profile.metrics.file_count == 2
    assert profile.metrics.component_count == 1
    assert profile.metrics.test_coverage_estimate == 50
    assert profile.metrics.loc_count == 4


@pytest.mark.parametrize(
    ("deps", "expected"),
    [
        ({"react": "18", "react-scripts": "5"}, "Create React App"),
        ({"react": "18", "vite": "5"}, "Vite + React"),
        ({"react": "18"}, "React"),
        ({"gatsby": "5", "react": "18"}, "Gatsby"),
        ({"vue": "3"}, "Vue"),
        ({"express": "4"}, "Express"),
        ({"lodash": "4"}, "Unknown"),
    ],
)
def test_quality_framework_table(repo_builder, deps, expected) -> None:
    repo_builder.write({"package.json": _package(**deps), "index.js": "module.exports = 1;\n"})

    assert QualityAnalyzer().analyze(repo_builder.scan()).framework == expected


def test_quality_detects_python_framework(repo_builder) -> None:
    repo_builder.write(
        {
            "requirements.txt": "Flask>=2.0\nrequests\n",
            "app.py": "from flask import Flask\n",
        }
    )

    profile = QualityAnalyzer().analyze(repo_builder.scan())

    assert profile.framework == "Flask"
    assert profile.has_typed_source is False
    assert profile.package_manager is PackageManager.NPM


def test_tailwind_requires_config_file(repo_builder) -> None:
    repo_builder.write({"package.json": _package(react="18", tailwindcss="3")})
    assert QualityAnalyzer().analyze(repo_builder.scan()).design_system is DesignSystem.NONE

    repo_builder.write({"tailwind.config.js": "module.exports = {};\n"})
    assert QualityAnalyzer().analyze(repo_builder.scan()).design_system is DesignSystem.TAILWIND


def test_design_system_priority_prefers_material_over_styled(repo_builder) -> None:
    repo_builder.write(
        {"package.json": _package(**{"styled-components": "6", "@mui/material": "5"})}
    )
    repo_builder.write({"yarn.lock": "# yarn\n"})

    profile = QualityAnalyzer().analyze(repo_builder.scan())

    assert profile.design_system is DesignSystem.MATERIAL_UI
    assert profile.package_manager is PackageManager.YARN


def test_coverage_estimate_when_every_file_is_a_test(repo_builder) -> None:
    repo_builder.write(
        {
            "a.test.js": "test('a', () => {});\n",
            "b.spec.ts": "test('b', () => {});\n",
        }
    )

    metrics = QualityAnalyzer().analyze(repo_builder.scan()).metrics

    assert metrics.test_coverage_estimate == 100
    assert metrics.file_count == 2
