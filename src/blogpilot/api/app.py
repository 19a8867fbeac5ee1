"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blogpilot import __version__
from blogpilot.api.dependencies import (
    close_autopilot,
    close_event_manager,
    close_http_client,
    close_run_store,
    init_autopilot,
    init_event_manager,
    init_http_client,
    init_run_store,
)
from blogpilot.api.models import APIResponse
from blogpilot.api.routes import autopilot, events, images, runs
from blogpilot.autopilot import Autopilot
from blogpilot.config import load_settings
from blogpilot.run_store import RunNotFoundError, RunStoreError
from blogpilot.wiring import build_clients, build_pipeline

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from blogpilot.config import Settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager. This is the composition root."""
    settings: Settings = app.state.settings or load_settings()

    # Startup
    store = init_run_store(settings.database.path)
    event_manager = init_event_manager()
    init_http_client(settings.images.timeout)
    clients = build_clients(settings)
    pilot = Autopilot(
        build_pipeline(settings, clients, run_store=store),
        events=event_manager,
        config=settings.autopilot,
    )
    init_autopilot(pilot)
    if settings.autopilot.enabled:
        logger.info("Autopilot enabled in config, starting")
        pilot.start()

    yield
    # Shutdown
    await pilot.shutdown()
    close_autopilot()
    await clients.aclose()
    await close_http_client()
    close_event_manager()
    close_run_store()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with. Loaded from blogpilot.yaml and the
            environment at startup when omitted.
    """
    app = FastAPI(
        title="BlogPilot API",
        description="REST API for BlogPilot - automated blog writing and publishing",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(RunNotFoundError)
    async def run_not_found_handler(_request: Request, _exc: RunNotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=APIResponse[None](data=None, error="Run not found").model_dump(),
        )

    @app.exception_handler(RunStoreError)
    async def run_store_error_handler(_request: Request, _exc: RunStoreError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse[None](data=None, error="Internal server error").model_dump(),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(_request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=APIResponse[None](data=None, error=str(exc)).model_dump(),
        )

    # Include routers
    app.include_router(autopilot.router, prefix="/api/v1")
    app.include_router(runs.router, prefix="/api/v1")
    app.include_router(images.router, prefix="/api/v1")
    app.include_router(events.router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
