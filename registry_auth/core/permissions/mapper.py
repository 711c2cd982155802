from typing import Iterable, Optional, Union

from registry_auth.core.errors import APIError
from registry_auth.core.permissions.models import (
    EMPTY_PERMISSIONS,
    PackagePermission,
    PermissionLabel,
    PermissionSet,
)

_READ_WRITE: PermissionSet = frozenset(
    {PackagePermission.READ, PackagePermission.WRITE}
)
_READ_ONLY: PermissionSet = frozenset({PackagePermission.READ})

_PERMISSION_MAP = {
    PermissionLabel.ADMIN: _READ_WRITE,
    PermissionLabel.MAINTAIN: _READ_WRITE,
    PermissionLabel.WRITE: _READ_WRITE,
    PermissionLabel.TRIAGE: _READ_ONLY,
    PermissionLabel.READ: _READ_ONLY,
    PermissionLabel.NONE: EMPTY_PERMISSIONS,
}


def map_permission(label: Optional[Union[PermissionLabel, str]]) -> PermissionSet:
    """Map a repository permission label to the package permissions it grants.

    Raises:
        APIError: if the label is missing or not a known permission level
    """
    try:
        return _PERMISSION_MAP[PermissionLabel(label)]
    except ValueError:
        raise APIError("Unknown permission type", {"permission": label}) from None


def set_union(a: Iterable, b: Iterable) -> frozenset:
    """Return a new set holding every element of ``a`` and ``b``."""
    return frozenset(a) | frozenset(b)
