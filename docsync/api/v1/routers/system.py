"""
System Router - Health and status endpoints.
"""

from fastapi import APIRouter

from ....config import settings
from ....models import HealthResponse
from ....services.connector_health_service import connector_health_service
from ....services.connector_registry import connector_registry

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Check service health.

    Returns:
        HealthResponse with service status and aggregated connector status
    """
    summary = connector_health_service.get_health_summary()
    return HealthResponse(
        status="healthy",
        version=settings.api_version,
        connectors_registered=len(connector_registry),
        overall_connector_status=summary["overall_status"],
    )


@router.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "service": settings.api_title,
        "version": settings.api_version,
        "status": "running",
    }
