"""Health check endpoint."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from reconciler import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, Any]:
    """Liveness probe. Does not touch the stores."""
    return {
        "status": "healthy",
        "service": "payment-webhook",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }
