"""Permission resolution services."""
from .catalog_service import CatalogService
from .identity_service import IdentityService
from .repository_permission_service import RepositoryPermissionService
from .user_permission_service import UserPermissionService

__all__ = [
    'CatalogService',
    'IdentityService',
    'RepositoryPermissionService',
    'UserPermissionService'
]
