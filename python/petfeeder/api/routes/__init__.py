"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from petfeeder.api.routes.accounts import router as accounts_router
from petfeeder.api.routes.auth import router as auth_router
from petfeeder.api.routes.drive import router as drive_router
from petfeeder.api.routes.health import router as health_router
from petfeeder.api.routes.schedules import router as schedules_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(auth_router, tags=["auth"])
    api_router.include_router(accounts_router, tags=["accounts"])
    api_router.include_router(schedules_router, tags=["schedules"])
    api_router.include_router(drive_router, tags=["drive"])
    return api_router


__all__ = ["create_api_router"]
