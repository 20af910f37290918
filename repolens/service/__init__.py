"""HTTP service exposing repolens analysis and context selection."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
