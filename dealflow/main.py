"""FastAPI application factory for the dealflow API.

Wiring only (lifespan, exception handlers, middleware, routers); business
logic lives in dealflow.application. Settings are read inside create_app()
so tests can adjust the environment first. Serve with:

    uvicorn dealflow.main:create_app --factory
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dealflow.api.v1 import api_router
from dealflow.core.config import Settings, get_settings
from dealflow.core.exception_handlers import register_exception_handlers
from dealflow.core.lifespan import create_lifespan
from dealflow.middleware import RequestIDMiddleware

API_V1_PREFIX = "/api/v1"


def _allowed_origins(settings: Settings) -> list[str]:
    return [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]


def create_app() -> FastAPI:
    """Build the app: deal events, scheduler triggers, cron and health routes."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    register_exception_handlers(app)

    # Last added runs first: request id is set before CORS and routing.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)

    app.include_router(api_router, prefix=API_V1_PREFIX)
    return app
