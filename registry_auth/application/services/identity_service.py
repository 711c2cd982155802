"""Identity, organization membership and team resolution"""

import hashlib
from typing import Callable, List

from registry_auth.application.services.base import ServiceBase
from registry_auth.core.errors import AuthenticationError, UpstreamError
from registry_auth.core.identity import normalize_username, organization_team, same_user
from registry_auth.core.permissions.models import Team
from registry_auth.infrastructure.cache import ResultCache
from registry_auth.infrastructure.github.client import GraphQLClient
from registry_auth.infrastructure.github.queries import (
    GET_ORGANIZATION_TEAMS,
    VERIFY_ORGANIZATION,
    VERIFY_USER_IDENTITY,
)
from registry_auth.infrastructure.github.schema import (
    OrganizationTeamsResponse,
    VerifyOrganizationResponse,
    VerifyUserIdentityResponse,
    page_info_at,
    parse_page,
    parse_pages,
)

ClientFactory = Callable[[str], GraphQLClient]


class IdentityService(ServiceBase):
    """Checks who a token belongs to and what the user is a member of.

    Identity checks run with a client scoped to the user's own token; the
    organization-wide client is only used for membership and team queries.
    """

    def __init__(
        self,
        client: GraphQLClient,
        cache: ResultCache,
        organization: str,
        client_factory: ClientFactory,
    ):
        super().__init__(cache)
        self.client = client
        self.organization = organization
        self.client_factory = client_factory

    async def authenticate(self, username: str, token: str) -> List[Team]:
        """Verify identity and membership, then return the user's teams.

        The identity and membership checks are cached per user and token;
        the team roster is cached once for the whole organization.
        """
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
        key = f"identity:{normalize_username(username)}:{digest}"

        await self.cache.get(key, lambda: self._verify(username, token))
        return await self.get_user_teams(username)

    async def _verify(self, username: str, token: str) -> bool:
        await self.verify_user_identity(username, token)
        return await self.verify_organization(username)

    async def verify_user_identity(self, username: str, token: str) -> None:
        """Ensure ``token`` belongs to ``username``.

        Raises:
            AuthenticationError: ``login_state=False`` if the token is rejected or
                belongs to someone else, ``login_state=None`` if the check failed
        """
        self.logger.debug("verifying_identity", username=username)

        async with self.client_factory(token) as user_client:
            try:
                data = await user_client.get(VERIFY_USER_IDENTITY)
                response = parse_page(VerifyUserIdentityResponse, data, "VerifyUserIdentity")
            except UpstreamError as e:
                if e.status_code == 401:
                    raise AuthenticationError("Invalid token", login_state=False) from e
                raise AuthenticationError(e.message, login_state=None) from e
            except Exception as e:
                raise AuthenticationError(str(e) or type(e).__name__, login_state=None) from e

        if not same_user(response.viewer.login, username):
            raise AuthenticationError("Username does not match token", login_state=False)

    async def verify_organization(self, username: str) -> bool:
        """Ensure ``username`` is a member of the organization."""
        self.logger.debug("verifying_organization", username=username, organization=self.organization)

        pages = await self.client.get_all(
            VERIFY_ORGANIZATION,
            {"login": self.organization},
            lambda page: page_info_at(page, "organization", "membersWithRole"),
        )

        members = set()
        for page in parse_pages(VerifyOrganizationResponse, pages, "VerifyOrganization"):
            if page.organization is None:
                continue
            for edge in page.organization.members_with_role.edges:
                if edge is None or edge.node is None:
                    continue
                members.add(normalize_username(edge.node.login))

        if normalize_username(username) not in members:
            raise AuthenticationError("User not part of organization", login_state=False)
        return True

    async def organization_teams(self) -> List[Team]:
        """All teams of the organization with their members."""
        self.logger.debug("organization_teams_requested", organization=self.organization)
        return await self.cache.get("organization_teams", self._fetch_organization_teams)

    async def get_user_teams(self, username: str) -> List[Team]:
        """The organization team followed by every team listing ``username``."""
        self.logger.debug("user_teams_requested", username=username)
        normalized = normalize_username(username)

        teams = [organization_team(self.organization, username)]
        for team in await self.organization_teams():
            if normalized in team.members:
                teams.append(team)
        return teams

    async def _fetch_organization_teams(self) -> List[Team]:
        pages = await self.client.get_all(
            GET_ORGANIZATION_TEAMS,
            {"login": self.organization},
            lambda page: page_info_at(page, "organization", "teams"),
        )

        teams: List[Team] = []
        for page in parse_pages(OrganizationTeamsResponse, pages, "GetOrganizationTeams"):
            if page.organization is None:
                continue
            for edge in page.organization.teams.edges:
                if edge is None or edge.node is None:
                    continue
                members = tuple(
                    normalize_username(member.login)
                    for member in edge.node.members.nodes
                    if member is not None
                )
                teams.append(Team(name=edge.node.name, members=members))

        self.logger.debug("organization_teams_fetched", teams=[t.name for t in teams])
        return teams
