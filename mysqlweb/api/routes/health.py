"""
Health Check Routes - System health and monitoring endpoints.

These endpoints are used for:
1. Process supervisors and container health checks
2. Quick system status verification
3. The front-end's update check (a placeholder that never reports one)
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Response

from mysqlweb import __version__
from mysqlweb.api.dependencies import get_registry
from mysqlweb.core.logging_config import get_logger
from mysqlweb.database.connection_manager import SessionRegistry
from mysqlweb.models.schemas import HealthResponse

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint",
    description="Returns 200 OK while the service is running.",
)
async def health_check() -> HealthResponse:
    """
    Perform a basic health check.

    Does not touch any database session.
    """
    logger.debug("Health check requested")

    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.utcnow()
    )


@router.get(
    "/health/ready",
    response_model=HealthResponse,
    summary="Readiness check endpoint",
)
def readiness_check(registry: SessionRegistry = Depends(get_registry)) -> HealthResponse:
    """Report readiness along with the number of open sessions."""
    logger.debug("Readiness check requested")

    return HealthResponse(
        status="ready",
        version=__version__,
        timestamp=datetime.utcnow(),
        open_sessions=registry.count(),
    )


@router.get(
    "/api/update",
    status_code=204,
    response_class=Response,
    summary="Check for a newer release",
)
async def check_update() -> Response:
    # Update checks are not implemented; the client treats 204 as "up to date".
    return Response(status_code=204)
