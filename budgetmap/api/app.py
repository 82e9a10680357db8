"""FastAPI application factory for the record sink and municipality lookups.

Usage:
    budgetmap serve --config-dir config
"""

from __future__ import annotations

import time
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from budgetmap.api.routes import allocations, health, municipalities
from budgetmap.api.storage import AllocationStorage
from budgetmap.common.config_loader import AppConfig
from budgetmap.common.constants import RECENT_ALLOCATIONS_LIMIT
from budgetmap.common.logging import get_logger, log_event
from budgetmap.pipeline.source import load_topology
from budgetmap.pipeline.store import FeatureStore

API_PREFIX = "/api"

logger = get_logger(__name__)


def feature_store_from_config(config: AppConfig, source: str | None = None) -> FeatureStore:
    topology_source = source or config.topology_source
    return FeatureStore(
        lambda: load_topology(topology_source, cache_bust=config.cache_bust),
        source_epsg=config.source_epsg,
        overrides=config.budget_overrides,
    )


def create_app(
    config: AppConfig | None = None,
    *,
    storage: AllocationStorage | None = None,
    feature_store: FeatureStore | None = None,
) -> FastAPI:
    if storage is None:
        if config is None:
            raise ValueError("create_app needs either a config or a storage")
        storage = AllocationStorage(Path(config.storage_path))
    if feature_store is None and config is not None:
        feature_store = feature_store_from_config(config)

    app = FastAPI(title="budgetmap", description="Municipal budget allocation record sink")
    app.state.storage = storage
    app.state.feature_store = feature_store
    app.state.list_limit = config.list_limit if config is not None else RECENT_ALLOCATIONS_LIMIT

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins) if config is not None else ["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.monotonic()
        response = await call_next(request)
        log_event(
            logger,
            f"{request.method} {request.url.path} {response.status_code}",
            stage="serve",
            event="HTTP_REQUEST",
            status="ok" if response.status_code < 500 else "error",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return response

    app.include_router(health.router, prefix=API_PREFIX)
    app.include_router(allocations.router, prefix=API_PREFIX)
    app.include_router(municipalities.router, prefix=API_PREFIX)
    return app


def run(config: AppConfig) -> None:
    import uvicorn

    log_event(
        logger,
        f"serving on {config.server_host}:{config.server_port}",
        stage="serve",
        event="SERVER_START",
        status="ok",
    )
    uvicorn.run(create_app(config), host=config.server_host, port=config.server_port, log_config=None)
