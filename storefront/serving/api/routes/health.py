"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Request, Response
import structlog

from storefront.config import get_settings
from storefront.database.connection import check_database_health
from storefront.errors import MediaGatewayError
from storefront.serving.api.schemas import HealthResponse
from storefront.serving.cache import check_redis_health

logger = structlog.get_logger(__name__)
router = APIRouter()


async def check_media_health(request: Request) -> dict:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        return {"status": "unavailable"}
    try:
        reachable = await gateway.ping()
    except MediaGatewayError as e:
        return {"status": "unhealthy", "error": e.message}
    return {"status": "healthy" if reachable else "unhealthy"}


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Database connectivity
    - Media store reachability
    - Redis connectivity (when the cache is enabled)
    """
    settings = get_settings()
    checks = {
        "database": await check_database_health(),
        "media": await check_media_health(request),
        "cache": await check_redis_health(),
    }

    if checks["database"]["status"] != "healthy":
        overall_status = "unhealthy"
    elif checks["media"]["status"] != "healthy" or checks["cache"]["status"] == "unhealthy":
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """Returns 200 if the application is running."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """Returns 200 if the database is reachable."""
    db_health = await check_database_health()
    if db_health.get("status") != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "database_unavailable"}
    return {"status": "ready"}
