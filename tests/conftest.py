"""Pytest configuration and fixtures"""

import asyncio
import os

os.environ.setdefault("REGISTRY_AUTH_ORGANIZATION", "acme")
os.environ.setdefault("REGISTRY_AUTH_TOKEN", "org-token")
os.environ.setdefault("REGISTRY_AUTH_ENVIRONMENT", "development")
os.environ.setdefault("REGISTRY_AUTH_LOG_LEVEL", "WARNING")

import httpx
import pytest
import pytest_asyncio

from registry_auth.core.config import PluginConfig
from registry_auth.infrastructure.cache import ResultCache
from registry_auth.infrastructure.github.client import GraphQLClient
from registry_auth.plugin import PackageAuthPlugin

from tests.fakes import ORG_TOKEN, ORGANIZATION, FakeClock, FakeOrganization


@pytest.fixture
def organization() -> FakeOrganization:
    """Fake organization backend"""
    return FakeOrganization()


@pytest.fixture
def transport(organization: FakeOrganization) -> httpx.MockTransport:
    return httpx.MockTransport(organization.handler)


@pytest.fixture
def plugin_config() -> PluginConfig:
    return PluginConfig(organization=ORGANIZATION, token=ORG_TOKEN)


@pytest.fixture
def cache() -> ResultCache:
    return ResultCache(ttl=300)


@pytest_asyncio.fixture
async def client(transport: httpx.MockTransport):
    """GraphQL client authenticated with the organization token"""
    graphql_client = GraphQLClient(ORG_TOKEN, transport=transport)
    yield graphql_client
    await graphql_client.aclose()


@pytest_asyncio.fixture
async def plugin(plugin_config: PluginConfig, transport: httpx.MockTransport):
    """Plugin wired to the fake organization"""
    auth_plugin = PackageAuthPlugin(plugin_config, transport=transport)
    yield auth_plugin
    await auth_plugin.aclose()


@pytest.fixture
def sync_plugin(plugin_config: PluginConfig, transport: httpx.MockTransport):
    """Plugin for tests that drive it from their own event loop"""
    auth_plugin = PackageAuthPlugin(plugin_config, transport=transport)
    yield auth_plugin
    asyncio.run(auth_plugin.aclose())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
