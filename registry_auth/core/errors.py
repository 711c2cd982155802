"""Base exception classes for registry-auth"""

from typing import Any, Dict, Literal, Optional

LoginState = Literal[True, False, None]


class RegistryAuthError(Exception):
    """Base exception for all registry-auth errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(RegistryAuthError):
    """Raised when configuration is invalid"""
    pass


class APIError(RegistryAuthError):
    """Raised when the remote API returns a value outside its documented vocabulary"""
    pass


class AuthenticationError(RegistryAuthError):
    """Raised when a user cannot be authenticated.

    ``login_state`` is ``False`` when the user is definitely not authorized
    (bad token, not an organization member) and ``None`` when the outcome
    could not be determined (unexpected upstream failure).
    """

    def __init__(
        self,
        message: str,
        login_state: LoginState = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.login_state = login_state
        super().__init__(message, details)


class UpstreamError(RegistryAuthError):
    """Raised when a request to the remote GraphQL API fails"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)


class ResponseValidationError(RegistryAuthError):
    """Raised when a remote payload does not match the expected schema"""

    def __init__(self, query: str, errors: list):
        self.query = query
        self.errors = errors
        super().__init__(
            f"Invalid response for query '{query}'",
            {"query": query, "errors": errors},
        )
