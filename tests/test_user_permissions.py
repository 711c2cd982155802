"""Tests for resolving a user's package permissions"""

import asyncio
import json

import pytest

from registry_auth.core.permissions import EMPTY_PERMISSIONS, PackagePermission, RemoteUser

from tests.fakes import FakeRepository

READ = PackagePermission.READ
WRITE = PackagePermission.WRITE


class TestPackagePermissionsForUser:
    """Test combining the catalog with repository grants"""

    @pytest.mark.asyncio
    async def test_direct_grants_only(self, plugin):
        user = RemoteUser(name="alice", groups=[])

        permissions = await plugin.user_permissions.package_permissions_for_user(user)

        assert permissions == {"@acme/web": {READ, WRITE}, "@acme/api": {READ}}

    @pytest.mark.asyncio
    async def test_team_grants_are_added(self, plugin):
        user = RemoteUser(name="alice", groups=["acme", "developers"])

        permissions = await plugin.user_permissions.package_permissions_for_user(user)

        assert permissions == {"@acme/web": {READ, WRITE}, "@acme/api": {READ, WRITE}}

    @pytest.mark.asyncio
    async def test_team_only_access(self, plugin):
        user = RemoteUser(name="bob", groups=["acme", "ops"])

        permissions = await plugin.user_permissions.package_permissions_for_user(user)

        assert permissions == {"@acme/web": {READ}}

    @pytest.mark.asyncio
    async def test_packages_without_permissions_are_omitted(self, plugin):
        user = RemoteUser(name="carol", groups=["acme"])

        permissions = await plugin.user_permissions.package_permissions_for_user(user)

        assert permissions == {}

    @pytest.mark.asyncio
    async def test_unknown_user_has_no_permissions(self, plugin):
        user = RemoteUser(name="nobody", groups=[])

        assert await plugin.user_permissions.package_permissions_for_user(user) == {}

    @pytest.mark.asyncio
    async def test_catalog_entry_without_repository_permissions(self, organization, plugin):
        organization.repositories.append(
            FakeRepository(
                "legacy",
                manifest=json.dumps({"name": "@acme/legacy"}),
                has_permissions=False,
            )
        )
        user = RemoteUser(name="alice", groups=["developers"])

        permissions = await plugin.user_permissions.package_permissions_for_user(user)

        assert "@acme/legacy" not in permissions
        assert await plugin.catalog.package_names() == {
            "@acme/web": "web-app",
            "@acme/api": "api-server",
            "@acme/legacy": "legacy",
        }


class TestPackagePermissionsForPackage:
    """Test single package lookups"""

    @pytest.mark.asyncio
    async def test_known_package(self, plugin):
        user = RemoteUser(name="alice", groups=[])

        assert await plugin.user_permissions.package_permissions_for_user_for_package(
            user, "@acme/web"
        ) == {READ, WRITE}

    @pytest.mark.asyncio
    async def test_unknown_package_is_empty(self, plugin):
        user = RemoteUser(name="alice", groups=["developers"])

        assert await plugin.user_permissions.package_permissions_for_user_for_package(
            user, "@acme/unknown"
        ) == EMPTY_PERMISSIONS


class TestResolutionCaching:
    """Test that upstream data is fetched once per TTL window"""

    @pytest.mark.asyncio
    async def test_differently_cased_names_share_a_result(self, organization, plugin):
        first = await plugin.user_permissions.package_permissions_for_user(
            RemoteUser(name="alice", groups=[])
        )
        second = await plugin.user_permissions.package_permissions_for_user(
            RemoteUser(name="ALICE", groups=[])
        )

        assert first is second
        assert len(organization.calls_for("GetOrganizationPackageFiles")) == 1
        assert len(organization.calls_for("GetOrganizationRepositoryPermissions")) == 1

    @pytest.mark.asyncio
    async def test_same_user_with_other_groups_is_resolved_again(self, organization, plugin):
        without_teams = await plugin.user_permissions.package_permissions_for_user(
            RemoteUser(name="alice", groups=[])
        )
        with_teams = await plugin.user_permissions.package_permissions_for_user(
            RemoteUser(name="alice", groups=["acme", "developers"])
        )

        assert without_teams == {"@acme/web": {READ, WRITE}, "@acme/api": {READ}}
        assert with_teams == {"@acme/web": {READ, WRITE}, "@acme/api": {READ, WRITE}}
        assert len(organization.calls_for("GetOrganizationRepositoryPermissions")) == 1

    @pytest.mark.asyncio
    async def test_group_order_does_not_split_the_cache(self, plugin):
        first = await plugin.user_permissions.package_permissions_for_user(
            RemoteUser(name="alice", groups=["developers", "acme"])
        )
        second = await plugin.user_permissions.package_permissions_for_user(
            RemoteUser(name="alice", groups=["acme", "developers"])
        )

        assert first is second

    @pytest.mark.asyncio
    async def test_concurrent_users_share_upstream_fetches(self, organization, plugin):
        users = [
            RemoteUser(name="alice", groups=["developers"]),
            RemoteUser(name="bob", groups=["ops"]),
            RemoteUser(name="carol", groups=["developers"]),
        ]

        results = await asyncio.gather(
            *(plugin.user_permissions.package_permissions_for_user(user) for user in users)
        )

        assert results[0] == {"@acme/web": {READ, WRITE}, "@acme/api": {READ, WRITE}}
        assert results[1] == {"@acme/web": {READ}}
        assert results[2] == {"@acme/api": {READ, WRITE}}
        assert len(organization.calls_for("GetOrganizationPackageFiles")) == 1
        assert len(organization.calls_for("GetOrganizationRepositoryPermissions")) == 1


class TestTeamUnion:
    """Test permissions granted through several teams"""

    @pytest.mark.asyncio
    async def test_read_and_write_teams_combine(self, organization, plugin):
        organization.repositories = [
            FakeRepository(
                "repo_2",
                manifest=json.dumps({"name": "pkg_2"}),
                collaborators={
                    "user_a": [("READ", "Team", "team_1")],
                    "user_b": [("WRITE", "Team", "team_2")],
                },
            )
        ]
        user = RemoteUser(name="user_1", groups=["team_1", "team_2"])

        permissions = await plugin.user_permissions.package_permissions_for_user_for_package(
            user, "pkg_2"
        )

        assert permissions == {READ, WRITE}

    @pytest.mark.asyncio
    async def test_single_team(self, organization, plugin):
        organization.repositories = [
            FakeRepository(
                "repo_2",
                manifest=json.dumps({"name": "pkg_2"}),
                collaborators={"user_a": [("READ", "Team", "team_1")]},
            )
        ]
        user = RemoteUser(name="user_1", groups=["team_1"])

        assert await plugin.user_permissions.package_permissions_for_user(user) == {"pkg_2": {READ}}
