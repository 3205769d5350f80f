"""Health check endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from storelink.core.config import settings
from storelink.schemas.common import HealthResponse
from storelink.services.connection_registry import ConnectionRegistry, get_connection_registry

router = APIRouter(tags=["health"])


def _credentials_configured() -> bool:
    return bool(settings.shopify_api_key and settings.shopify_api_secret)


@router.get("/health")
async def health_check(
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> HealthResponse:
    """
    Health check endpoint.

    Reports whether Shopify credentials are configured and how many
    install pages are waiting on a notification socket.
    """
    checks = {
        "shopify_credentials": "configured" if _credentials_configured() else "missing",
        "open_channels": str(len(registry)),
    }
    return HealthResponse(
        status="healthy" if _credentials_configured() else "unhealthy",
        version=settings.version,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Liveness probe for Kubernetes/container orchestration.

    Simple check that the service is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, str]:
    """
    Readiness probe for Kubernetes/container orchestration.

    The service cannot complete an install without app credentials.
    """
    if not _credentials_configured():
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Shopify credentials not configured")
    return {"status": "ready"}
