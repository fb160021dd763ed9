"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (logging, shared HTTP client,
telemetry, DB engine dispose).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from dealflow.core.config import get_settings
from dealflow.infrastructure.persistence.database import dispose_engine, get_engine
from dealflow.shared.telemetry.logging import get_logger, setup_logging
from dealflow.shared.telemetry.telemetry import Telemetry, get_telemetry, set_telemetry

logger = get_logger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: logging, shared HTTP client for the mail transport, telemetry
    (if enabled). Shutdown: HTTP client close, telemetry shutdown, SQL
    engine dispose.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    # Shared HTTP client for the Resend transport (connection reuse).
    app.state.http_client = httpx.AsyncClient(timeout=settings.email_timeout_seconds)

    if settings.telemetry_enabled:
        telemetry = Telemetry(
            settings.app_name, settings.app_version, settings.telemetry_environment
        )
        provider = telemetry.start(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        if provider is not None:
            telemetry.instrument(app, get_engine(), app.state.http_client)
            set_telemetry(telemetry)

    logger.info("%s %s started", settings.app_name, settings.app_version)

    yield

    # ---- Shutdown ----
    if getattr(app.state, "http_client", None) is not None:
        await app.state.http_client.aclose()
        app.state.http_client = None
        logger.info("HTTP client closed")

    telemetry = get_telemetry()
    if telemetry is not None:
        telemetry.shutdown()
        set_telemetry(None)

    await dispose_engine()
