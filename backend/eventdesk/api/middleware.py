"""
Request correlation and access logging.

Door scanners and kiosks send their own X-Request-ID so a scan can be traced
from the device log to ours; other callers get a short generated id.
Health and metrics checks are logged at debug. SSE responses are logged
when the stream opens, since they stay open for the life of the dashboard.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from eventdesk.core.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time"
MAX_REQUEST_ID_LENGTH = 64
QUIET_PATHS = frozenset({"/health", "/metrics"})
EVENT_STREAM = "text/event-stream"


def resolve_request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    return incoming[:MAX_REQUEST_ID_LENGTH] or uuid.uuid4().hex[:8]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request)
        path = request.url.path
        started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms}ms"

        if response.headers.get("content-type", "").startswith(EVENT_STREAM):
            logger.info("stream_opened", status_code=response.status_code)
        elif path in QUIET_PATHS:
            logger.debug("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        else:
            logger.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        return response
