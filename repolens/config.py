"""Configuration loading for repolens (.repolens.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".repolens.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ScannerConfig:
    """Traversal bounds and path filters."""

    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    max_depth: int = 64
    max_file_bytes: int = 1_000_000


@dataclass
class GapConfig:
    short_file_threshold: int = 10


@dataclass
class ClassifierConfig:
    existing_app_component_threshold: int = 5


@dataclass
class ContextConfig:
    """Defaults for context selection requests."""

    max_tokens: int = 8000
    max_files: int = 10
    dependency_depth: int = 2


@dataclass
class LensConfig:
    """Represents the settings defined in .repolens.yml."""

    root: Path
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    gaps: GapConfig = field(default_factory=GapConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    context: ContextConfig = field(default_factory=ContextConfig)


def load_config(config_path: Path) -> LensConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return LensConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    scanner = ScannerConfig()
    scanner_data = _as_dict(data.get("scanner"))
    if scanner_data:
        scanner.include = _as_str_list(scanner_data.get("include"))
        scanner.exclude = _as_str_list(scanner_data.get("exclude"))
        scanner.max_depth = _as_positive_int(scanner_data.get("max_depth"), scanner.max_depth)
        scanner.max_file_bytes = _as_positive_int(
            scanner_data.get("max_file_bytes"), scanner.max_file_bytes
        )
    # Top-level exclude mirrors .gitignore semantics and is applied by the scanner.
    scanner.exclude.extend(_as_str_list(data.get("exclude")))

    gaps = GapConfig()
    gap_data = _as_dict(data.get("gaps"))
    if gap_data:
        gaps.short_file_threshold = _as_positive_int(
            gap_data.get("short_file_threshold"), gaps.short_file_threshold
        )

    classifier = ClassifierConfig()
    classifier_data = _as_dict(data.get("classifier"))
    if classifier_data:
        threshold = _as_int(classifier_data.get("existing_app_component_threshold"))
        if threshold is not None and threshold >= 0:
            classifier.existing_app_component_threshold = threshold

    context = ContextConfig()
    context_data = _as_dict(data.get("context"))
    if context_data:
        context.max_tokens = _as_positive_int(context_data.get("max_tokens"), context.max_tokens)
        context.max_files = _as_positive_int(context_data.get("max_files"), context.max_files)
        context.dependency_depth = _as_positive_int(
            context_data.get("dependency_depth"), context.dependency_depth
        )

    return LensConfig(
        root=root,
        scanner=scanner,
        gaps=gaps,
        classifier=classifier,
        context=context,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_positive_int(value: Any, default: int) -> int:
    parsed = _as_int(value)
    if parsed is None or parsed <= 0:
        return default
    return parsed


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ClassifierConfig",
    "ConfigError",
    "ContextConfig",
    "GapConfig",
    "LensConfig",
    "ScannerConfig",
    "load_config",
]
