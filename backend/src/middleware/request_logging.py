"""Request logging middleware: log and time every request, feed status/latency into metrics."""
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.monitoring.metrics import record_request

logger = logging.getLogger(__name__)

RESPONSE_TIME_HEADER = "X-Response-Time-Ms"
# Polled constantly by uptime checks; counted in metrics but not logged
QUIET_PATHS = {"/health"}


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, query, status_code, duration_ms, client_ip; record metrics; expose timing header."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        record_request(response.status_code, duration_ms)
        response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms:.1f}"
        if request.url.path not in QUIET_PATHS:
            logger.info(
                "request method=%s path=%s query=%s status=%s duration_ms=%.1f client=%s",
                request.method,
                request.url.path,
                request.url.query,
                response.status_code,
                duration_ms,
                _client_ip(request),
            )
        return response
