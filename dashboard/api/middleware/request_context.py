"""Request context middleware.

Tags every request with a short request id, echoes it in ``X-Request-Id``
and logs method, path, status and duration. Audit entries are not written
here: only handlers know whether an action actually took place.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from dashboard.common.logger import get_logger

logger = get_logger("dashboard.access")

# Paths that should not be logged (health checks, docs)
EXCLUDED_PATHS = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id and log each request's outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request.state.request_id = request_id
        start_time = time.time()

        response = await call_next(request)

        duration_ms = round((time.time() - start_time) * 1000, 2)
        response.headers["X-Request-Id"] = request_id

        if request.url.path not in EXCLUDED_PATHS:
            logger.info(
                "%s %s %s %sms request_id=%s",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                request_id,
            )
        return response
