"""Health and readiness endpoints."""

from fastapi import APIRouter, HTTPException

from ..core.monitoring import get_monitor_state

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness probe - always returns ok if process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready():
    """Readiness probe - ready once the first cycle has been published."""
    if not get_monitor_state().ready:
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}
