"""
Health check router for liveness and readiness probes.
"""
from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.asyncio import Redis

from nakama_auth.dependencies.providers import get_auth_db, get_redis

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if the API is running.
    """
    return {"status": "healthy"}


@router.get(
    "/health/ready",
    status_code=status.HTTP_200_OK,
    summary="Readiness check with dependencies",
)
async def readiness_check(
    db: AsyncIOMotorDatabase = Depends(get_auth_db),
    redis: Redis = Depends(get_redis),
):
    """
    Readiness check that verifies database connections.
    Reports MongoDB and Redis reachability.
    """
    checks = {
        "api": "healthy",
        "mongodb": "unknown",
        "redis": "unknown",
    }

    # Check MongoDB
    try:
        await db.command("ping")
        checks["mongodb"] = "healthy"
    except Exception as e:
        checks["mongodb"] = f"unhealthy: {type(e).__name__}"

    # Check Redis
    try:
        await redis.ping()
        checks["redis"] = "healthy"
    except Exception as e:
        checks["redis"] = f"unhealthy: {type(e).__name__}"

    # Overall status
    all_healthy = all(v == "healthy" for v in checks.values())

    return {
        "status": "healthy" if all_healthy else "degraded",
        "checks": checks,
    }
