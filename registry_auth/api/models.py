"""Request and response models for the HTTP API"""

from datetime import datetime
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field

from registry_auth.core.permissions.models import PackagePermission, RemoteUser


class AccessAction(str, Enum):
    ACCESS = "access"
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"

    @property
    def required_permission(self) -> PackagePermission:
        if self is AccessAction.ACCESS:
            return PackagePermission.READ
        return PackagePermission.WRITE


class AuthenticateRequest(BaseModel):
    username: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1, repr=False)


class AuthenticateResponse(BaseModel):
    username: str
    groups: List[str]


class UserRequest(BaseModel):
    username: str = Field(..., min_length=1)
    groups: List[str] = Field(default_factory=list)

    def to_remote_user(self) -> RemoteUser:
        return RemoteUser(name=self.username, groups=self.groups)


class AuthorizeRequest(UserRequest):
    package: str = Field(..., min_length=1)
    action: AccessAction = AccessAction.ACCESS


class AuthorizeResponse(BaseModel):
    username: str
    package: str
    action: AccessAction
    allowed: bool


class PackagePermissionsResponse(BaseModel):
    username: str
    packages: Dict[str, List[PackagePermission]]


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    organization: str
    timestamp: datetime
    uptime_seconds: float
