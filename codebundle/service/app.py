"""FastAPI application entrypoint for codebundle service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, List, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..aggregator import Aggregator
from ..config import BundleConfig, ConfigError
from ..models import RunResult


class BundleRequest(BaseModel):
    paths: List[str]
    extra_roots: List[str] = []
    name_filter: Optional[str] = None
    schema_path: Optional[str] = None
    extensions: List[str] = []
    exclude_prefixes: List[str] = []


class BundleResponse(BaseModel):
    text: str
    files_processed: int
    files_skipped: int
    models: List[str]


class HealthResponse(BaseModel):
    status: str


AggregatorFactory = Callable[[BundleRequest], Aggregator]


def _default_aggregator(payload: BundleRequest) -> Aggregator:
    config = BundleConfig(root=Path.cwd())
    return Aggregator.from_config(
        config,
        extensions=payload.extensions or None,
        exclude_prefixes=payload.exclude_prefixes,
        schema_path=Path(payload.schema_path) if payload.schema_path else None,
    )


def create_app(
    aggregator_factory: AggregatorFactory = _default_aggregator,
) -> FastAPI:
    """Create the FastAPI application exposing bundling."""

    app = FastAPI(title="codebundle", version="1.0.0")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/bundle", response_model=BundleResponse)
    async def bundle(payload: BundleRequest) -> BundleResponse:
        if not payload.paths:
            raise ConfigError("At least one path is required")

        def _run_bundle() -> RunResult:
            # Each request gets its own aggregator and therefore its own run state.
            aggregator = aggregator_factory(payload)
            return aggregator.run(
                payload.paths, payload.extra_roots, name_filter=payload.name_filter
            )

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_bundle)
        return BundleResponse(
            text=result.text,
            files_processed=result.files_processed,
            files_skipped=result.files_skipped,
            models=result.models,
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
