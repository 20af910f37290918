"""FastAPI application entrypoint for repolens service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..orchestrator import ContextOptions, Orchestrator
from ..repo_scanner import ScanIOError


class AnalyzeRequest(BaseModel):
    path: str


class AnalyzeResponse(BaseModel):
    classification: str
    root: str
    has_code: bool
    has_docs: bool
    quality: Dict[str, Any]
    requirements: Dict[str, Any]
    features: List[Dict[str, Any]]
    gaps: List[Dict[str, Any]]
    recommendations: List[Dict[str, Any]]
    improvements: List[str]
    file_tree: str
    skipped: List[Dict[str, Any]]
    project_config: Optional[Dict[str, Any]] = None


class ContextRequest(BaseModel):
    path: str
    intent: str = Field(min_length=1)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    max_files: Optional[int] = Field(default=None, ge=1)
    include_related: bool = False
    depth: Optional[int] = Field(default=None, ge=1)


class ContextResponse(BaseModel):
    intent: Dict[str, Any]
    candidates: List[Dict[str, Any]]
    total_tokens: int
    max_tokens: int
    max_files: int
    text: str


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing repolens operations."""

    app = FastAPI(title="repolens", version="0.1.0")

    async def get_orchestrator() -> Orchestrator:
        # Lazy-instantiate per request to keep state predictable.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze_repo(
        payload: AnalyzeRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> AnalyzeResponse:
        loop = asyncio.get_running_loop()
        analysis = await loop.run_in_executor(None, orchestrator.run_analysis, payload.path)
        data = analysis.to_dict()
        return AnalyzeResponse(
            **data,
            features=data["requirements"]["features"],
            improvements=analysis.improvements(),
        )

    @app.post("/context", response_model=ContextResponse)
    async def select_context(
        payload: ContextRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ContextResponse:
        options = ContextOptions(
            max_tokens=payload.max_tokens,
            max_files=payload.max_files,
            include_related=payload.include_related,
            depth=payload.depth,
        )

        def _run_context():
            return orchestrator.run_context(payload.path, payload.intent, options)

        loop = asyncio.get_running_loop()
        selection = await loop.run_in_executor(None, _run_context)
        return ContextResponse(**selection.to_dict())

    @app.exception_handler(ScanIOError)
    async def scan_error_handler(_: Any, exc: ScanIOError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc), "path": exc.path})

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
