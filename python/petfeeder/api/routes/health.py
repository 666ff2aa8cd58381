"""Health check endpoints."""

from fastapi import APIRouter

from petfeeder.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Liveness check endpoint.

    Returns 200 if the process is running.
    Does not check the identity store or any upstream.
    """
    return {"status": "ok", "env": get_settings().petfeeder_env.value}
