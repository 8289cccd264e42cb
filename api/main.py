"""
FastAPI application entrypoint for the parcel tracking API.

This module sets up the FastAPI app, configures logging, builds the scrape
pipeline from configuration and registers route handlers.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import tracking
from api.schemas import HealthResponse
from api.services.tracking_service import TrackingService
from shared.config import AppConfig, get_config
from shared.logging import configure_logging
from worker.orchestrator import RetryOrchestrator


def create_app(
    config: Optional[AppConfig] = None,
    orchestrator: Optional[RetryOrchestrator] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or get_config()

    # Configure structured logging
    log_level = logging.getLevelName(config.log_level.upper())
    configure_logging(
        level=log_level,
        log_file=config.log_file,
        log_stdout=config.log_stdout,
    )

    app = FastAPI(
        title="Parcel Tracking API",
        description="Scrapes a parcel tracking page and returns structured tracking data",
        version="0.1.0",
    )

    # CORS middleware (permissive; callers are browsers on other origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.tracking_service = TrackingService(orchestrator or RetryOrchestrator(config))

    # Register route handlers
    app.include_router(tracking.router)

    @app.get("/health", response_model=HealthResponse)
    def health_check() -> HealthResponse:
        """Health check endpoint; does not touch the scrape pipeline."""
        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))

    return app


# Create the app instance
app = create_app()
