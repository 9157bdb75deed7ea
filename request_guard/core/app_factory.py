"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
limiter state) so tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from request_guard.api.routes import health_router, rate_limits_router
from request_guard.core.config import settings
from request_guard.core.exception_handlers import setup_exception_handlers
from request_guard.core.limiters import LimiterSet, build_limiters
from request_guard.core.logging import configure_logging
from request_guard.core.middleware import request_id_middleware
from request_guard.core.openapi import apply_openapi_customizations


def create_app(limiters: LimiterSet | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        limiters: Pre-built limiter set (tests inject one with a fake
            clock); built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Request Guard",
        description=(
            "Request-governance layer for a personal finance dashboard: "
            "per-subject fixed-window rate limits and guarded operations."
        ),
        version="0.1.0",
    )
    app.state.limiters = limiters if limiters is not None else build_limiters(settings.limiter)

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(rate_limits_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
