"""Readiness probes for the ledger database and Redis."""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Literal

import redis.asyncio as redis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.utils.logger import get_logger

logger = get_logger(__name__)

ProbeStatus = Literal["healthy", "degraded", "unhealthy"]


@dataclass
class HealthCheckResult:
    service: str
    status: ProbeStatus
    connected: bool
    latency_ms: int
    details: dict = field(default_factory=dict)
    error: str | None = None


@dataclass
class OverallHealthStatus:
    status: ProbeStatus
    services: dict[str, HealthCheckResult]
    timestamp: str


class HealthService:
    """The database is required for every charge; Redis only carries the
    package cache and alert delivery, so losing it degrades the service.
    """

    def __init__(self, db: AsyncSession, redis_client: redis.Redis):
        self.db = db
        self.redis = redis_client

    async def _probe(
        self,
        service: str,
        check: Callable[[], Awaitable[dict]],
        failure_status: ProbeStatus,
    ) -> HealthCheckResult:
        started = time.perf_counter()
        try:
            details = await check()
        except Exception as e:
            logger.warning("Health probe failed", service=service, error=str(e))
            return HealthCheckResult(
                service=service,
                status=failure_status,
                connected=False,
                latency_ms=int((time.perf_counter() - started) * 1000),
                error=str(e),
            )
        return HealthCheckResult(
            service=service,
            status="healthy",
            connected=True,
            latency_ms=int((time.perf_counter() - started) * 1000),
            details=details,
        )

    async def _check_database(self) -> dict:
        result = await self.db.execute(text("SELECT 1"))
        return {"test_query_result": result.scalar()}

    async def _check_redis(self) -> dict:
        await self.redis.ping()
        return {}

    async def run_all_checks(self) -> OverallHealthStatus:
        database, redis_result = await asyncio.gather(
            self._probe("database", self._check_database, "unhealthy"),
            self._probe("redis", self._check_redis, "degraded"),
        )

        if database.status != "healthy":
            overall: ProbeStatus = "unhealthy"
        elif redis_result.status != "healthy":
            overall = "degraded"
        else:
            overall = "healthy"

        return OverallHealthStatus(
            status=overall,
            services={"database": database, "redis": redis_result},
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
