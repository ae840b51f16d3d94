"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from elections.api.routes import admin, health, nomination, voting, withdrawal


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(nomination.router, tags=["nomination"])
    api_router.include_router(voting.router, tags=["voting"])
    api_router.include_router(withdrawal.router, tags=["withdrawal"])
    api_router.include_router(admin.router, prefix="/admin", tags=["admin"])

    application.include_router(api_router)


__all__ = ["register_routes"]
