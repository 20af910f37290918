"""Tests for requirements and feature extraction."""

from __future__ import annotations

import pytest

from repolens.analyzers.requirements import (
    ParseFailure,
    RequirementsExtractor,
    detect_priority,
    extract_data_models,
    extract_prd_features,
    extract_user_flows,
    extract_user_stories,
    parse_structured_block,
)
from repolens.models import FeatureStatus, Priority


PRD = """\
# Product Requirements

## Overview
Shopping app for plants.

- not a feature

## Features
- User login (must have)
  Supports email and SSO.
  Sessions last a week.
- Dark mode (nice to have)
- [x] Product search
- Wishlist [in progress]
- Export to CSV (P1)

## Timeline
- Q1 launch
"""


def test_extract_prd_features_reads_features_section() -> None:
    features = extract_prd_features(PRD)

    assert [feature.name for feature in features] == [
        "User login (must have)",
        "Dark mode (nice to have)",
        "Product search",
        "Wishlist",
        "Export to CSV (P1)",
    ]
    login, dark, search, wishlist, export = features
    assert login.priority is Priority.HIGH
    assert login.description == "Supports email and SSO. Sessions last a week."
    assert dark.priority is Priority.LOW
    assert search.priority is Priority.MEDIUM
    assert search.status is FeatureStatus.COMPLETED
    assert wishlist.status is FeatureStatus.IN_PROGRESS
    assert export.priority is Priority.HIGH
    assert login.status is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Critical: payments", Priority.HIGH),
        ("Optional theming", Priority.LOW),
        ("Profile page", Priority.MEDIUM),
        ("Required but maybe later", Priority.HIGH),
    ],
)
def test_detect_priority(text: str, expected: Priority) -> None:
    assert detect_priority(text) is expected


def test_extract_user_stories_matches_both_forms() -> None:
    content = (
        "As a shopper, I want to save my cart so that I can buy later.\n"
        "- User story: Receive order emails\n"
    )

    stories = extract_user_stories(content)

    assert [story.name for story in stories] == ["to save my cart", "Receive order emails"]
    assert stories[0].description == "As a shopper, I can buy later."
    assert all(story.priority is Priority.MEDIUM for story in stories)


def test_parse_structured_block_handles_json_and_yaml() -> None:
    assert parse_structured_block("json", '{"name": "User"}') == {"name": "User"}
    assert parse_structured_block("yaml", "name: Order\nfields: [id]\n") == {
        "name": "Order",
        "fields": ["id"],
    }
    with pytest.raises(ParseFailure):
        parse_structured_block("typescript", "interface User { id: string }")
    with pytest.raises(ParseFailure):
        parse_structured_block("", "not json")


def test_extract_data_models_recovers_raw_and_tables() -> None:
    content = """\
# Data model

```json
{"User": {"id": "string"}}
```

```typescript
interface Order { id: string }
```

```text
just prose
```

| field | type |
| ----- | ---- |
| id    | uuid |
"""

    models = extract_data_models(content)

    assert models[0] == {"User": {"id": "string"}}
    assert models[1] == {"raw": "interface Order { id: string }\n"}
    assert models[2]["table"][0] == "| field | type |"
    assert len(models) == 3


def test_extract_user_flows_stops_at_next_heading() -> None:
    content = """\
# Overview
## User Flow: Checkout
1. Open cart
2. Pay
## Journey: Returns
1. Request refund
### Notes
Ignored
"""

    flows = extract_user_flows(content)

    assert flows == [
        "User Flow: Checkout\n1. Open cart\n2. Pay",
        "Journey: Returns\n1. Request refund",
    ]


def test_requirements_extractor_aggregates_documents(repo_builder) -> None:
    repo_builder.write(
        {
            "README.md": "# Plant shop\n",
            "requirements/PRD.md": "## Features\n- Login (must)\n- Search\n",
            "docs/user-stories.md": "- Story: search\n- Story: Checkout\n",
            "docs/technical-spec.md": "# Tech\n",
            "docs/schema.md": "```json\n{\"Plant\": {}}\n```\n",
        }
    )
    repo_builder.write_bytes("design/mockups/home.png", b"\x89PNG\r\n")

    analysis = RequirementsExtractor().analyze(repo_builder.scan())

    assert analysis.prd is True
    assert analysis.user_stories is True
    assert analysis.technical_specs is True
    assert analysis.data_models is True
    assert analysis.mockups is True
    assert analysis.models == [{"Plant": {}}]
    # Documents are read in path order, so the story "search" shadows the PRD "Search".
    assert [feature.name for feature in analysis.features] == ["search", "Checkout", "Login (must)"]
