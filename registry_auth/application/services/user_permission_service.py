"""Resolve the packages a user can read or write"""

import asyncio
import hashlib

from registry_auth.application.services.base import ServiceBase
from registry_auth.application.services.catalog_service import CatalogService
from registry_auth.application.services.repository_permission_service import (
    RepositoryPermissionService,
)
from registry_auth.core.identity import normalize_username
from registry_auth.core.permissions.mapper import set_union
from registry_auth.core.permissions.models import (
    EMPTY_PERMISSIONS,
    PackagesPermissions,
    PermissionSet,
    RemoteUser,
)
from registry_auth.infrastructure.cache import ResultCache


class UserPermissionService(ServiceBase):
    """Combines the catalog with repository grants for a single user."""

    def __init__(
        self,
        cache: ResultCache,
        catalog: CatalogService,
        repositories: RepositoryPermissionService,
    ):
        super().__init__(cache)
        self.catalog = catalog
        self.repositories = repositories

    async def package_permissions_for_user(self, user: RemoteUser) -> PackagesPermissions:
        """Permissions of ``user`` on every package they can at least read.

        Packages the user holds no permission on are left out.
        """
        groups = ",".join(sorted(set(user.groups)))
        groups_digest = hashlib.sha256(groups.encode()).hexdigest()
        key = f"package_permissions_for_user:{normalize_username(user.name)}:{groups_digest}"
        return await self.cache.get(key, lambda: self._resolve(user))

    async def package_permissions_for_user_for_package(
        self, user: RemoteUser, package_name: str
    ) -> PermissionSet:
        permissions = await self.package_permissions_for_user(user)
        return permissions.get(package_name, EMPTY_PERMISSIONS)

    async def _resolve(self, user: RemoteUser) -> PackagesPermissions:
        package_names, all_repository_permissions = await asyncio.gather(
            self.catalog.package_names(),
            self.repositories.repository_permissions(),
        )

        username = normalize_username(user.name)
        packages_permissions: PackagesPermissions = {}

        for package_name, repository_name in package_names.items():
            repository_permissions = all_repository_permissions.get(repository_name)
            # Unknown repository -> no permissions
            if repository_permissions is None:
                continue

            permissions = repository_permissions.users.get(username, EMPTY_PERMISSIONS)
            for group in user.groups:
                permissions = set_union(
                    permissions, repository_permissions.teams.get(group, EMPTY_PERMISSIONS)
                )

            if permissions:
                packages_permissions[package_name] = permissions

        self.logger.debug(
            "package_permissions_resolved",
            username=username,
            groups=user.groups,
            packages={name: sorted(p.value for p in perms) for name, perms in packages_permissions.items()},
        )
        return packages_permissions
