"""Per-request logging context and one access line per call."""

import time
import uuid

import structlog
from fastapi import Request

from src.utils.logger import get_client_ip, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Probes poll constantly and stay out of the access log
_QUIET_PATHS = frozenset({"/health", "/health/liveness"})


async def logging_middleware(request: Request, call_next):
    if request.url.path in _QUIET_PATHS:
        return await call_next(request)

    structlog.contextvars.clear_contextvars()
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        ip_address=get_client_ip(request),
        method=request.method,
        path=request.url.path,
    )

    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - started) * 1000)

    log = logger.error if response.status_code >= 500 else logger.info
    log(
        "request",
        status_code=response.status_code,
        duration=duration_ms,
        service_caller=getattr(request.state, "service_caller", False),
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response
