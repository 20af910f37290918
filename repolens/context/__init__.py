"""Intent-driven context selection."""

from .graph import DependencyGraph, GraphCache, expand_dependencies
from .intent import parse_intent
from .selector import ContextSelector, classify_path, estimate_tokens

__all__ = [
    "ContextSelector",
    "DependencyGraph",
    "GraphCache",
    "classify_path",
    "estimate_tokens",
    "expand_dependencies",
    "parse_intent",
]
