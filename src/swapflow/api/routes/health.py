"""Health check endpoints."""

from fastapi import APIRouter

from swapflow import __version__
from swapflow.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness check."""
    return {"status": "healthy", "service": "swapflow"}


@router.get("/health/detailed")
async def detailed_health():
    """Readiness of the proxy: degraded while no 1inch key is configured."""
    settings = get_settings()
    return {
        "status": "healthy" if settings.has_api_key else "degraded",
        "service": "swapflow",
        "version": __version__,
        "chain_id": settings.chain_id,
        "upstream": {
            "url": settings.upstream_url(""),
            "api_key_configured": settings.has_api_key,
        },
        "config": settings.get_safe_dict(),
    }
