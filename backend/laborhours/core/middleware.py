"""
Labor Hours - HTTP Middleware
Request ids, access logging, security headers and body size limits
"""

import time
from typing import Callable, Set
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from laborhours.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)


QUIET_PATHS: Set[str] = {
    "/health",
    "/api/v1/health",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
}

# Bulk operations run their items sequentially; flag batches that take this long
SLOW_REQUEST_MS = 5000

# Admin responses can contain freshly generated temporary passwords
NO_STORE_PREFIX = "/api/v1/admin/"


def should_skip_logging(path: str) -> bool:
    return path in QUIET_PATHS


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request id, logs one line per request and adds the
    X-Request-ID / X-Response-Time headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        path = request.url.path
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"{request.method} {path} raised {type(exc).__name__} ({duration_ms:.2f}ms)",
                exc_info=True,
                extra={"event_type": "http_request_error", "http_path": path},
            )
            raise
        finally:
            set_user_id("")

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if not should_skip_logging(path):
            logger.log_request(request.method, path, response.status_code, duration_ms)
            if duration_ms > SLOW_REQUEST_MS:
                logger.warning(f"Slow request: {request.method} {path} took {duration_ms:.0f}ms")

        set_request_id("")
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith(NO_STORE_PREFIX):
            response.headers["Cache-Control"] = "no-store"

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies larger than max_size based on Content-Length"""

    def __init__(self, app: ASGIApp, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length", "")

        if content_length.isdigit() and int(content_length) > self.max_size:
            logger.warning(
                f"Request body too large: {content_length} bytes on {request.url.path} "
                f"(max {self.max_size})"
            )
            return JSONResponse(
                status_code=413,
                content={
                    "success": False,
                    "error": {
                        "code": "PAYLOAD_TOO_LARGE",
                        "message": f"Request body exceeds {self.max_size} bytes",
                        "details": {},
                    },
                },
            )

        return await call_next(request)


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "should_skip_logging",
]
