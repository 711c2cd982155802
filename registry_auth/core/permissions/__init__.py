"""Package permission vocabulary and mapping."""
from .mapper import map_permission, set_union
from .models import (
    EMPTY_PERMISSIONS,
    PackageCatalog,
    PackagePermission,
    PackagesPermissions,
    PermissionLabel,
    PermissionSet,
    PermissionSourceType,
    RemoteUser,
    RepositoryPermissions,
    Team,
)

__all__ = [
    'map_permission',
    'set_union',
    'EMPTY_PERMISSIONS',
    'PackageCatalog',
    'PackagePermission',
    'PackagesPermissions',
    'PermissionLabel',
    'PermissionSet',
    'PermissionSourceType',
    'RemoteUser',
    'RepositoryPermissions',
    'Team'
]
