import logging
import re
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("gameshelf.requests")

_NUMERIC_SEGMENT_RE = re.compile(r"^\d+$")
_SKIP_PATHS = {"/health"}


def normalize_path(path: str) -> str:
    """Collapse numeric id segments so log lines group by route: /api/mywishlist/7 -> /api/mywishlist/:id."""
    parts = [part for part in str(path or "").split("/") if part]
    if not parts:
        return "/"
    return "/" + "/".join(":id" if _NUMERIC_SEGMENT_RE.match(part) else part for part in parts)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if request.method == "OPTIONS" or path in _SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            latency_ms = (time.perf_counter() - started) * 1000.0
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                normalize_path(path),
                status_code,
                latency_ms,
            )
