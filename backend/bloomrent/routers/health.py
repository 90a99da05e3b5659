"""Health check endpoints for load balancers and monitoring."""

import logging

import redis.asyncio as redis
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bloomrent.config import settings
from bloomrent.database import engine
from bloomrent.utils.cache import get_redis
from bloomrent.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Lightweight health check (no DB/Redis check)."""
    return {
        "status": "ok",
        "service": "Bloom Rent",
        "timestamp": utcnow().isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness check including the database and, when caching is on, Redis.

    Returns 503 if any dependency is down.
    """
    checks = {"service": "ok", "database": "unknown", "redis": "disabled"}
    healthy = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Readiness: database check failed: {e}")
        checks["database"] = f"error: {str(e)[:100]}"
        healthy = False

    if settings.cache_enabled:
        try:
            client = await get_redis()
            await client.ping()
            checks["redis"] = "ok"
        except (redis.RedisError, OSError) as e:
            logger.warning(f"Readiness: redis check failed: {e}")
            checks["redis"] = f"error: {str(e)[:100]}"
            healthy = False

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "Bloom Rent",
            "checks": checks,
            "timestamp": utcnow().isoformat(),
        },
    )
