import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("portal.access")


def _driver_from_path(path: str) -> str | None:
    """Return the driver id segment of ``/drivers/{id}`` style paths."""
    parts = [p for p in path.split("/") if p]
    if "drivers" in parts:
        idx = parts.index("drivers")
        if idx + 1 < len(parts):
            return parts[idx + 1]
    return None


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emit one structured access log line per request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        dur_ms = int((time.perf_counter() - start) * 1000)
        status = response.status_code
        log_fn = logger.error if status >= 500 else logger.info
        log_fn(
            "%s %s",
            request.method,
            request.url.path,
            extra={
                "route": request.url.path,
                "status": status,
                "latency_ms": dur_ms,
                "driver": _driver_from_path(request.url.path),
            },
        )
        return response
