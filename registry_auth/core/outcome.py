"""Login outcomes.

A login either succeeds with the user's groups, is refused (401) or could
not be decided (500). ``classify_login_error`` is the only place an
exception is turned into one of the failure variants.
"""

from dataclasses import dataclass, field
from typing import List, Union

from registry_auth.core.errors import AuthenticationError


@dataclass(frozen=True)
class Authorized:
    groups: List[str] = field(default_factory=list)
    status: int = 200


@dataclass(frozen=True)
class Unauthorized:
    message: str
    status: int = 401
    name: str = "Authentication error"


@dataclass(frozen=True)
class InternalError:
    message: str
    status: int = 500
    name: str = "Internal Error"


LoginOutcome = Union[Authorized, Unauthorized, InternalError]


def classify_login_error(error: Exception) -> Union[Unauthorized, InternalError]:
    message = str(error) or "Unknown error"
    if isinstance(error, AuthenticationError) and error.login_state is False:
        return Unauthorized(message=message)
    return InternalError(message=message)
