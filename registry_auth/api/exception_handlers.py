from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from registry_auth.core.exceptions import (
    BaseAPIException,
    InternalServerError,
    ValidationError,
)
from registry_auth.infrastructure.logging import get_logger
from registry_auth.infrastructure.middleware.correlation import get_correlation_id

logger = get_logger(__name__)


def _json_error(exc: BaseAPIException, correlation_id) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_error_response(correlation_id=correlation_id).model_dump(exclude_none=True),
        headers={"X-Correlation-ID": correlation_id} if correlation_id else {},
    )


async def base_api_exception_handler(
    request: Request, exc: BaseAPIException
) -> JSONResponse:
    correlation_id = get_correlation_id()

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "api_exception",
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
    )

    return _json_error(exc, correlation_id)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    correlation_id = get_correlation_id()

    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning("validation_error", errors=errors, path=request.url.path)

    return _json_error(
        ValidationError(message="Request validation failed", details={"errors": errors}),
        correlation_id,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    correlation_id = get_correlation_id()

    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=exc,
    )

    return _json_error(
        InternalServerError(message="An unexpected error occurred"),
        correlation_id,
    )
