from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    correlation_id: Optional[str] = None


class BaseAPIException(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int,
        details: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_error_response(self, correlation_id: Optional[str] = None) -> ErrorResponse:
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details,
            correlation_id=correlation_id
        )


class ValidationError(BaseAPIException):
    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code="RGA-400",
            message=message,
            status_code=400,
            details=details
        )


class UnauthorizedError(BaseAPIException):
    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code="RGA-401",
            message=message,
            status_code=401,
            details=details
        )


class ForbiddenError(BaseAPIException):
    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code="RGA-403",
            message=message,
            status_code=403,
            details=details
        )


class InternalServerError(BaseAPIException):
    def __init__(self, message: str = "Internal server error", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code="RGA-500",
            message=message,
            status_code=500,
            details=details
        )


ERROR_CODES = {
    "RGA-400": "Bad Request - The request was invalid or malformed",
    "RGA-401": "Unauthorized - The credentials were rejected",
    "RGA-403": "Forbidden - Access to this resource is denied",
    "RGA-500": "Internal Server Error - An unexpected error occurred"
}
