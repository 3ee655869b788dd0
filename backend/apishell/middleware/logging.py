"""
apishell: Development Request Logging Middleware
================================================

What:  One access log line per request: method, path, status, duration.
Why:   Quick feedback while developing; production relies on the platform
       router's access logs instead.
When:  Registered by the app factory only when ENVIRONMENT != production.

Format:
    GET /health 200 1.2ms [a1b2c3d4]
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from apishell.middleware.request_id import request_id_var

logger = logging.getLogger("apishell.access")


def access_log_level(status: int) -> int:
    # 5xx → ERROR, 4xx → WARNING, everything else → INFO
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        rid = response.headers.get("X-Request-ID") or request_id_var.get("")
        logger.log(
            access_log_level(status),
            "%s %s %d %.1fms [%s]",
            request.method,
            request.url.path,
            status,
            duration_ms,
            rid,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
