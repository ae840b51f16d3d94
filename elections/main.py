"""FastAPI application entrypoint."""
from __future__ import annotations

from fastapi import FastAPI

from elections.api.routes import register_routes
from elections.core.config import Settings, get_settings
from elections.core.errors import register_exception_handlers
from elections.core.logging import configure_logging
from elections.obs import (
    AuditMiddleware,
    PrometheusMiddleware,
    configure_tracing,
    instrument_fastapi_app,
    metrics_router,
)


def create_application(settings: Settings | None = None) -> FastAPI:
    """Application factory used by ASGI servers and tests."""
    configure_logging()
    settings = settings or get_settings()

    configure_tracing(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
    )
    register_exception_handlers(application)

    if settings.enable_audit_log:
        application.add_middleware(AuditMiddleware)
    if settings.enable_metrics:
        application.add_middleware(PrometheusMiddleware)
        application.include_router(metrics_router)
    register_routes(application)

    if settings.enable_tracing:
        instrument_fastapi_app(application)

    return application


app = create_application()
