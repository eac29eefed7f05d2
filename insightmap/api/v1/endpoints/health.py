"""Health check API endpoints."""

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from insightmap.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str = Field(..., description="healthy | degraded")
    version: str = Field(..., description="Running application version")
    service: str = Field(..., description="Service name")


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health check endpoint",
    description="Check if the service is running and the database is reachable",
    operation_id="get_service_health_status",
)
async def health_check(request: Request) -> HealthCheckResponse:
    """Health check endpoint."""
    db_health = await request.app.state.db_client.health_check()
    if db_health["status"] != "healthy":
        LOGGER.warning("Health check: database unreachable")

    app_settings = request.app.state.settings
    return HealthCheckResponse(
        status="healthy" if db_health["status"] == "healthy" else "degraded",
        version=app_settings.app_version,
        service=app_settings.app_name,
    )
