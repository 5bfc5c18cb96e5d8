"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
See merchant_verification.core.lifespan and core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and
clear the get_settings cache) before calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from merchant_verification.api import api_router, pipeline_router
from merchant_verification.core.config import get_settings
from merchant_verification.core.exception_handlers import register_exception_handlers
from merchant_verification.core.lifespan import create_lifespan
from merchant_verification.core.limiter import limiter
from merchant_verification.middleware import RequestIDMiddleware
from merchant_verification.shared.telemetry.logging import setup_logging


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()
    setup_logging("api")
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)

    app.include_router(api_router)
    app.include_router(pipeline_router, prefix="/api", include_in_schema=False)

    return app


app = create_app()
