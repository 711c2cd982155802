import re
import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

CORRELATION_HEADER = "X-Correlation-ID"

# Registries forward the ID verbatim; anything else is replaced
_VALID_CORRELATION_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def resolve_correlation_id(header: Optional[str]) -> str:
    """Reuse the caller's correlation ID when it is well formed, otherwise mint one."""
    if header and _VALID_CORRELATION_ID.match(header):
        return header
    return uuid.uuid4().hex


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Tags each login or authorization request with one correlation ID."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        token = correlation_id_var.set(correlation_id)
        try:
            with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
                response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            correlation_id_var.reset(token)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()
