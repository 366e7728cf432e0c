# ─────────────────────────────────────────────────────────────────────────────
# Request Middleware - request ID, timing, structured logging
# ─────────────────────────────────────────────────────────────────────────────
# Every log line emitted while a request is in flight carries its request_id,
# method and path (bound via structlog contextvars). The id comes from the
# caller's X-Request-ID when it looks safe to echo, otherwise a fresh one.
# ─────────────────────────────────────────────────────────────────────────────

import re
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def request_id_for(request: Request) -> str:
    """Caller-supplied X-Request-ID if well-formed, else an 8-char random id."""
    supplied = request.headers.get("x-request-id", "")
    if _SAFE_REQUEST_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request context for structured logging and reports timing.

    Probe paths (/health*) are not logged; load balancers hit them constantly.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request_id_for(request)
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        start = time.perf_counter()

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        if not request.url.path.startswith("/health"):
            log = logger.warning if response.status_code >= 500 else logger.info
            log("request_completed", status=response.status_code, duration_ms=duration_ms)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration_ms)
        return response
