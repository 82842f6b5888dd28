"""
HTTP middleware: request ids, security headers and request logging.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from swipeology.config import settings


logger = logging.getLogger("swipeology.requests")

QUIET_PATHS = {"/", "/health", "/docs", "/openapi.json"}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and adds API security headers."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # Profiles and chats are private
        if "/profiles" in request.url.path or "/chat" in request.url.path:
            response.headers["Cache-Control"] = "no-store, private"

        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and latency of every API request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        if request.url.path not in QUIET_PATHS:
            logger.info(
                "[API] %s %s - %s (%sms) id=%s",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                getattr(request.state, "request_id", "N/A"),
            )

        return response
