"""Tests for the GraphQL client"""

import httpx
import pytest

from registry_auth.core.errors import ResponseValidationError, UpstreamError
from registry_auth.infrastructure.github.client import GraphQLClient
from registry_auth.infrastructure.github.queries import (
    GET_ORGANIZATION_TEAMS,
    VERIFY_ORGANIZATION,
    VERIFY_USER_IDENTITY,
    operation_name,
)
from registry_auth.infrastructure.github.schema import page_info_at

ORG_TOKEN = "org-token"


def members_page_info(page):
    return page_info_at(page, "organization", "membersWithRole")


class TestOperationName:
    """Test query name extraction"""

    def test_named_query(self):
        assert operation_name(VERIFY_USER_IDENTITY) == "VerifyUserIdentity"
        assert operation_name(VERIFY_ORGANIZATION) == "VerifyOrganization"

    def test_anonymous_query(self):
        assert operation_name("{ viewer { login } }") == "anonymous"


class TestGraphQLClient:
    """Test single requests"""

    @pytest.mark.asyncio
    async def test_sends_token_and_variables(self, organization, client):
        data = await client.get(VERIFY_ORGANIZATION, {"login": "acme", "first": 5})

        assert data["organization"]["membersWithRole"]["edges"][0]["node"]["login"] == "alice"
        operation, variables, token = organization.calls[0]
        assert operation == "VerifyOrganization"
        assert variables == {"login": "acme", "first": 5}
        assert token == ORG_TOKEN

    @pytest.mark.asyncio
    async def test_unauthorized_status_is_reported(self, transport):
        async with GraphQLClient("wrong-token", transport=transport) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get(VERIFY_USER_IDENTITY)

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Bad credentials"

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self):
        def handler(request):
            return httpx.Response(
                200, json={"data": None, "errors": [{"message": "Field 'x' doesn't exist"}]}
            )

        async with GraphQLClient("t", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get(VERIFY_USER_IDENTITY)

        assert "Field 'x' doesn't exist" in exc_info.value.message
        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_missing_data_raises(self):
        def handler(request):
            return httpx.Response(200, json={"unexpected": True})

        async with GraphQLClient("t", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(UpstreamError):
                await client.get(VERIFY_USER_IDENTITY)

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with GraphQLClient("t", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get(VERIFY_USER_IDENTITY)

        assert exc_info.value.status_code is None


class TestPagination:
    """Test Relay-style pagination"""

    @pytest.mark.asyncio
    async def test_uses_default_page_size(self, organization, client):
        pages = await client.get_all(VERIFY_ORGANIZATION, {"login": "acme"}, members_page_info)

        assert len(pages) == 1
        assert organization.calls_for("VerifyOrganization") == [{"first": 20, "login": "acme"}]

    @pytest.mark.asyncio
    async def test_follows_cursors_in_order(self, organization, transport):
        async with GraphQLClient(ORG_TOKEN, page_size=1, transport=transport) as client:
            pages = await client.get_all(VERIFY_ORGANIZATION, {"login": "acme"}, members_page_info)

        logins = [
            edge["node"]["login"]
            for page in pages
            for edge in page["organization"]["membersWithRole"]["edges"]
        ]
        assert logins == ["alice", "Bob", "carol"]

        calls = organization.calls_for("VerifyOrganization")
        assert [call.get("after") for call in calls] == [None, "1", "2"]
        assert all(call["first"] == 1 for call in calls)

    @pytest.mark.asyncio
    async def test_stops_without_cursor(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(
                200,
                json={
                    "data": {
                        "organization": {
                            "membersWithRole": {
                                "pageInfo": {"hasNextPage": True, "endCursor": None},
                                "edges": [],
                            }
                        }
                    }
                },
            )

        async with GraphQLClient("t", transport=httpx.MockTransport(handler)) as client:
            pages = await client.get_all(VERIFY_ORGANIZATION, {"login": "acme"}, members_page_info)

        assert len(pages) == 1
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_malformed_page_info_raises(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "data": {
                        "organization": {
                            "teams": {"pageInfo": {"hasNextPage": "maybe"}, "edges": []}
                        }
                    }
                },
            )

        async with GraphQLClient("t", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ResponseValidationError):
                await client.get_all(
                    GET_ORGANIZATION_TEAMS,
                    {"login": "acme"},
                    lambda page: page_info_at(page, "organization", "teams"),
                )
