from __future__ import annotations

"""Application factory.

Builds a fully wired FastAPI app: logging, shared state, middleware,
exception handlers, routers and docs. Each call returns an app with its own
tier registry and counter, which keeps tests isolated.
"""

from fastapi import FastAPI

from llm_meter.api.routes import health_router, tiers_router, usage_router
from llm_meter.core.config import Settings, settings
from llm_meter.core.exception_handlers import setup_exception_handlers
from llm_meter.core.logging import configure_logging
from llm_meter.core.middleware import request_id_middleware
from llm_meter.core.openapi import apply_openapi_customizations
from llm_meter.core.state import init_state


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to build from; defaults to the global settings.

    Returns:
        Configured FastAPI app.
    """
    cfg = app_settings or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="LLM Meter",
        description=(
            "Tier configuration and usage metering service. Stores a rate-limit "
            "value per named tier and counts authorized calls. Limits are "
            "stored and served only; nothing is throttled. Uses HTTP Basic auth."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
    )

    init_state(app, cfg)

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(tiers_router)
    app.include_router(usage_router)
    app.include_router(health_router)

    apply_openapi_customizations(
        app, counter_read_open=not cfg.auth.counter_read_requires_auth
    )

    return app
