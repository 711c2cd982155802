"""Permission vocabulary and resolution models"""

from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class PermissionLabel(str, Enum):
    """Repository permission levels reported by the organization host"""

    ADMIN = "ADMIN"
    MAINTAIN = "MAINTAIN"
    WRITE = "WRITE"
    TRIAGE = "TRIAGE"
    READ = "READ"
    NONE = "NONE"


class PackagePermission(str, Enum):
    """Permissions a user can hold on a published package"""

    READ = "read"
    WRITE = "write"


PermissionSet = FrozenSet[PackagePermission]

EMPTY_PERMISSIONS: PermissionSet = frozenset()


class PermissionSourceType(str, Enum):
    """Where a collaborator's permission comes from"""

    ORGANIZATION = "Organization"
    REPOSITORY = "Repository"
    TEAM = "Team"


class Team(BaseModel):
    """An organization team and its (normalized) member logins"""

    model_config = ConfigDict(frozen=True)

    name: str
    members: Tuple[str, ...] = ()


class RepositoryPermissions(BaseModel):
    """Every permission a repository grants, split by grantee kind.

    ``users`` only holds grants coming from the organization or the
    repository itself; team-derived grants stay under ``teams`` and are
    matched against a user's memberships at resolution time.
    """

    users: Dict[str, PermissionSet] = Field(default_factory=dict)
    teams: Dict[str, PermissionSet] = Field(default_factory=dict)


class RemoteUser(BaseModel):
    """An authenticated registry user and the groups returned at login"""

    name: str
    groups: List[str] = Field(default_factory=list)


PackageCatalog = Dict[str, str]
PackagesPermissions = Dict[str, PermissionSet]
