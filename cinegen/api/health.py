"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from .. import __version__

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": _now(),
        "service": "cinegen-studio",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Ready once the session has been wired up by the lifespan."""
    return {
        "ready": getattr(request.app.state, "session", None) is not None,
        "timestamp": _now(),
    }
