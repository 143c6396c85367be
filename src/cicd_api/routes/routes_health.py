"""Health check endpoints for monitoring application status."""

from datetime import datetime
from datetime import timezone

from fastapi import APIRouter
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from loguru import logger

ROUTER_HEALTH = APIRouter(tags=["Health"])


@ROUTER_HEALTH.get(
    "/health",
    summary="Health check endpoint",
    description="Returns application status and whether the pipeline database answers",
    responses={
        status.HTTP_200_OK: {
            "description": "Application is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "timestamp": "2026-01-05T12:00:00.000000+00:00",
                        "service": "Pipelines API",
                        "version": "v4",
                        "database": "healthy",
                    }
                }
            },
        },
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "The pipeline database does not answer"},
    },
)
async def health_check(request: Request):
    """
    Health check endpoint.

    Used by load balancers and Kubernetes liveness probes. Reports the database as
    "not-configured" when the app runs without a connection string.
    """
    db_pool = getattr(request.app.state, "db_pool", None)
    if db_pool is None:
        database = "not-configured"
    else:
        database = "healthy" if await db_pool.health_check() else "unhealthy"

    healthy = database != "unhealthy"
    response_data = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": request.app.title,
        "version": request.app.version,
        "database": database,
    }

    logger.debug("Health check requested", status=response_data["status"], database=database)

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response_data,
    )
