"""Per-repository permission aggregation"""

from typing import Dict

from registry_auth.application.services.base import ServiceBase
from registry_auth.core.errors import APIError
from registry_auth.core.identity import normalize_username
from registry_auth.core.permissions.mapper import map_permission, set_union
from registry_auth.core.permissions.models import (
    EMPTY_PERMISSIONS,
    PermissionSet,
    PermissionSourceType,
    RepositoryPermissions,
)
from registry_auth.infrastructure.cache import ResultCache
from registry_auth.infrastructure.github.client import GraphQLClient
from registry_auth.infrastructure.github.queries import (
    GET_ORGANIZATION_REPOSITORY_PERMISSIONS,
)
from registry_auth.infrastructure.github.schema import (
    RepositoryPermissionNode,
    RepositoryPermissionsResponse,
    page_info_at,
    parse_pages,
)
from registry_auth.infrastructure.logging import get_logger

logger = get_logger(__name__)

_DIRECT_SOURCES = {PermissionSourceType.ORGANIZATION.value, PermissionSourceType.REPOSITORY.value}


class RepositoryPermissionService(ServiceBase):
    """Folds collaborator permission sources into direct and team grants per repository."""

    def __init__(self, client: GraphQLClient, cache: ResultCache, organization: str):
        super().__init__(cache)
        self.client = client
        self.organization = organization

    async def repository_permissions(self) -> Dict[str, RepositoryPermissions]:
        self.logger.debug("repository_permissions_requested")
        return await self.cache.get("repository_permissions", self._fetch_repository_permissions)

    async def _fetch_repository_permissions(self) -> Dict[str, RepositoryPermissions]:
        pages = await self.client.get_all(
            GET_ORGANIZATION_REPOSITORY_PERMISSIONS,
            {"login": self.organization},
            lambda page: page_info_at(page, "organization", "repositories"),
        )

        repository_permissions: Dict[str, RepositoryPermissions] = {}
        for page in parse_pages(
            RepositoryPermissionsResponse, pages, "GetOrganizationRepositoryPermissions"
        ):
            if page.organization is None:
                continue

            for edge in page.organization.repositories.edges:
                if edge is None or edge.node is None:
                    continue
                repository_permissions[edge.node.name] = self.fold_repository(edge.node)

        self.logger.debug(
            "repository_permissions_fetched",
            repository_permissions={
                name: perms.model_dump(mode="json") for name, perms in repository_permissions.items()
            },
        )
        return repository_permissions

    @staticmethod
    def fold_repository(node: RepositoryPermissionNode) -> RepositoryPermissions:
        """Split one repository's collaborator grants into user and team permissions.

        Organization and repository grants land on the collaborator; team
        grants land on the team only. A collaborator without sources still
        gets an (empty) entry. Sources of any other kind are skipped.
        """
        users: Dict[str, PermissionSet] = {}
        teams: Dict[str, PermissionSet] = {}

        collaborators = node.collaborators.edges if node.collaborators else []
        for collaborator in collaborators:
            if collaborator is None:
                continue

            username = normalize_username(collaborator.node.login)
            user_permissions = users.get(username, EMPTY_PERMISSIONS)

            for source in collaborator.permission_sources or []:
                mapped = map_permission(source.permission)
                origin = source.source.typename

                if origin in _DIRECT_SOURCES:
                    user_permissions = set_union(user_permissions, mapped)
                elif origin == PermissionSourceType.TEAM.value:
                    if not source.source.name:
                        raise APIError(
                            "Team permission source without a name",
                            {"repository": node.name, "collaborator": username},
                        )
                    team_name = source.source.name
                    teams[team_name] = set_union(teams.get(team_name, EMPTY_PERMISSIONS), mapped)
                else:
                    logger.warning(
                        "permission_source_ignored",
                        repository=node.name,
                        collaborator=username,
                        source=origin,
                    )

            users[username] = user_permissions

        return RepositoryPermissions(users=users, teams=teams)
