"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from fastapi import APIRouter, Depends

from trackscan.config import get_settings
from trackscan.core.dependencies import get_native_detector
from trackscan.scanner.backends import NativeDetector


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, native: NativeDetector):
        self._native = native
        self._settings = get_settings()

    def check_backends(self) -> dict:
        """Report which decode backends this host can use."""
        return {
            "native": "available" if self._native.available else "unavailable",
            "fallback": "available" if self._settings.fallback_enabled else "disabled",
        }

    def get_health(self) -> dict:
        """Get full health status."""
        backends = self.check_backends()

        # Fallback alone can decode; without it only native remains
        if backends["fallback"] == "available":
            overall = "healthy"
        elif backends["native"] == "available":
            overall = "degraded"
        else:
            overall = "unhealthy"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                **backends,
            },
        }


@router.get("")
async def health_check(native: NativeDetector = Depends(get_native_detector)):
    """
    Health check endpoint.

    Returns API status and decode backend availability.
    """
    controller = HealthController(native)
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
