"""Health check endpoints for monitoring."""

import redis.asyncio as redis
from fastapi import APIRouter, Depends

from src.api.core.dependencies import AsyncSessionDep
from src.modules.health.service import HealthService, OverallHealthStatus
from src.redis.client import get_redis_client
from src.utils.settings.app import AppSettings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(
    db: AsyncSessionDep,
    redis_client: redis.Redis = Depends(get_redis_client),
) -> OverallHealthStatus:
    """Readiness: database and Redis probes with per-probe latency."""
    return await HealthService(db, redis_client).run_all_checks()


@router.get("/liveness")
async def liveness_check():
    """The process is up; dependencies are not consulted."""
    return {"status": "alive", "service": AppSettings().SERVICE_NAME}
