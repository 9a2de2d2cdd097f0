"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_health_check(source: str):
    """Lazy import to avoid startup failures."""
    if source == "google":
        from ...services.routing.google_client import check_health
    else:
        from ...services.routing.osrm_client import check_health
    return check_health


@router.get("/health/distance-source", status_code=status.HTTP_200_OK)
def health_distance_source() -> dict:
    """Check the configured external distance source."""
    source = settings.distance_source
    if source == "none":
        return {"service": source, "healthy": True, "fallback_only": True}
    try:
        healthy = _get_health_check(source)()
        return {"service": source, "healthy": healthy}
    except Exception as e:
        return {"service": source, "healthy": False, "error": str(e)}
