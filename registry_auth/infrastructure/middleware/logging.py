import time
from typing import Callable, Dict

import structlog
from fastapi import Request, Response
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware

from registry_auth.infrastructure.logging import get_logger
from registry_auth.infrastructure.middleware.correlation import get_correlation_id

logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request/response logging middleware"""

    def __init__(self, app):
        super().__init__(app)
        self.exclude_paths = {
            "/health",
            "/metrics",
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        if request.url.path in self.exclude_paths:
            return await call_next(request)

        request_id = get_correlation_id() or ""
        with structlog.contextvars.bound_contextvars(
            request_method=request.method,
            request_path=request.url.path,
            client_ip=self._get_client_ip(request),
        ):
            return await self._log_request(request, call_next, start_time, request_id)

    async def _log_request(
        self, request: Request, call_next: Callable, start_time: float, request_id: str
    ) -> Response:
        logger.info(
            "http_request_started",
            method=request.method,
            path=request.url.path,
            headers=self._sanitize_headers(request.headers),
            user_agent=request.headers.get("user-agent", "unknown"),
        )

        try:
            response = await call_next(request)

            duration = time.time() - start_time
            logger.info(
                "http_request_completed",
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{round(duration * 1000, 2)}ms"

            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                "http_request_failed",
                duration_ms=round(duration * 1000, 2),
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )
            raise

    def _get_client_ip(self, request: Request) -> str:
        """Extract real client IP from request"""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"

    def _sanitize_headers(self, headers: Headers) -> Dict[str, str]:
        sensitive_headers = {
            "authorization",
            "x-api-key",
            "x-auth-token",
            "cookie",
            "set-cookie",
        }

        return {
            key: "***REDACTED***" if key.lower() in sensitive_headers else value
            for key, value in headers.items()
        }
