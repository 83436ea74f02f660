"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from naisd import __version__

router = APIRouter()


@router.get("/isalive", response_class=PlainTextResponse)
async def is_alive() -> str:
    """Liveness check used by the platform."""
    return "alive"


@router.get("/health", response_model=Dict[str, str])
async def health_check() -> Dict[str, str]:
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
