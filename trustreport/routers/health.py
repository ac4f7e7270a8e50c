"""Health check routes for TrustReport API.

This module provides health check endpoints for monitoring the application
and its dependencies.
"""

import time
from typing import Awaitable, Callable, Dict

from fastapi import APIRouter

from trustreport.core.config import get_settings
from trustreport.database.mongodb import MongoDB
from trustreport.database.redis_client import RedisClient
from trustreport.schemas.base import DependencyStatus, HealthResponse
from trustreport.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)
settings = get_settings()


async def _check(ping: Callable[[], Awaitable[bool]]) -> DependencyStatus:
    start = time.perf_counter()
    healthy = await ping()
    latency_ms = round((time.perf_counter() - start) * 1000, 2)
    if healthy:
        return DependencyStatus(status="healthy", latency_ms=latency_ms)
    return DependencyStatus(status="unhealthy", latency_ms=latency_ms, error="ping failed")


@router.get("/live")
async def liveness_probe() -> Dict[str, str]:
    return {"status": "ok"}


@router.get("/detailed", response_model=HealthResponse)
async def detailed_health_check() -> HealthResponse:
    """Detailed health check including MongoDB and Redis.

    MongoDB is required for every report, so its failure makes the service
    unhealthy; Redis only caches configuration, so its failure degrades it.

    Returns:
        HealthResponse: Overall status with one entry per dependency
    """
    dependencies = {"database": await _check(MongoDB.ping)}

    if settings.ENABLE_CACHE:
        dependencies["cache"] = await _check(RedisClient.ping)
    else:
        dependencies["cache"] = DependencyStatus(status="disabled")

    overall_status = "healthy"
    if dependencies["database"].status != "healthy":
        overall_status = "unhealthy"
        logger.error("Database health check failed")
    elif dependencies["cache"].status == "unhealthy":
        overall_status = "degraded"
        logger.warning("Redis health check failed")

    return HealthResponse(
        status=overall_status,
        version=settings.APP_VERSION,
        environment=settings.APP_ENV,
        dependencies=dependencies,
    )
