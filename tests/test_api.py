"""Tests for the HTTP API"""

from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from registry_auth.core.config import Settings
from registry_auth.main import create_app

API = "/api/v1"


@pytest.fixture
def settings() -> Settings:
    return Settings(organization="acme", token="org-token", app_version="9.9.9")


@pytest.fixture
def app(settings, sync_plugin):
    return create_app(settings=settings, plugin=sync_plugin)


@pytest.fixture
def client(app):
    """Create test client"""
    with TestClient(app) as test_client:
        yield test_client


class TestAuthenticateEndpoint:
    """Test POST /authenticate"""

    def test_success(self, client):
        response = client.post(f"{API}/authenticate", json={"username": "alice", "token": "alice-token"})

        assert response.status_code == 200
        assert response.json() == {"username": "alice", "groups": ["acme", "developers"]}

    def test_wrong_token(self, client):
        response = client.post(f"{API}/authenticate", json={"username": "alice", "token": "bob-token"})

        assert response.status_code == 401
        data = response.json()
        assert data["code"] == "RGA-401"
        assert data["message"] == "Invalid credentials"
        assert "details" not in data

    def test_non_member(self, client):
        response = client.post(
            f"{API}/authenticate", json={"username": "mallory", "token": "mallory-token"}
        )

        assert response.status_code == 401
        assert "organization" not in response.json()["message"]

    def test_upstream_failure(self, client, organization):
        organization.failures["VerifyOrganization"] = httpx.Response(502, json={})

        response = client.post(f"{API}/authenticate", json={"username": "alice", "token": "alice-token"})

        assert response.status_code == 500
        assert response.json()["code"] == "RGA-500"

    def test_missing_fields(self, client):
        response = client.post(f"{API}/authenticate", json={"username": "alice"})

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "RGA-400"
        assert any(error["field"] == "body.token" for error in data["details"]["errors"])


class TestAuthorizeEndpoint:
    """Test POST /authorize"""

    @pytest.mark.parametrize(
        "username,groups,action,allowed",
        [
            ("bob", ["acme", "ops"], "access", True),
            ("bob", ["acme", "ops"], "publish", False),
            ("bob", ["acme", "ops"], "unpublish", False),
            ("alice", [], "publish", True),
            ("alice", [], "unpublish", True),
            ("carol", [], "access", False),
        ],
    )
    def test_actions(self, client, username, groups, action, allowed):
        response = client.post(
            f"{API}/authorize",
            json={"username": username, "groups": groups, "package": "@acme/web", "action": action},
        )

        assert response.status_code == 200
        assert response.json() == {
            "username": username,
            "package": "@acme/web",
            "action": action,
            "allowed": allowed,
        }

    def test_action_defaults_to_access(self, client):
        response = client.post(f"{API}/authorize", json={"username": "bob", "groups": ["ops"], "package": "@acme/web"})

        assert response.json()["action"] == "access"
        assert response.json()["allowed"] is True

    def test_unknown_action(self, client):
        response = client.post(
            f"{API}/authorize",
            json={"username": "bob", "package": "@acme/web", "action": "delete"},
        )

        assert response.status_code == 400

    def test_resolution_failure(self, app, sync_plugin, organization):
        organization.repositories[0].collaborators["alice"] = [("OWNER", "Repository", "web-app")]

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.post(
                f"{API}/authorize", json={"username": "alice", "package": "@acme/web"}
            )

        assert response.status_code == 500
        assert response.json()["code"] == "RGA-500"


class TestPermissionsEndpoint:
    """Test POST /permissions"""

    def test_lists_packages(self, client):
        response = client.post(
            f"{API}/permissions", json={"username": "Alice", "groups": ["developers"]}
        )

        assert response.status_code == 200
        assert response.json() == {
            "username": "Alice",
            "packages": {"@acme/web": ["read", "write"], "@acme/api": ["read", "write"]},
        }

    def test_no_packages(self, client):
        response = client.post(f"{API}/permissions", json={"username": "carol"})

        assert response.json()["packages"] == {}


class TestHealthAndMetrics:
    """Test operational endpoints"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "9.9.9"
        assert data["organization"] == "acme"
        assert data["uptime_seconds"] >= 0

    def test_metrics(self, client):
        client.post(f"{API}/authenticate", json={"username": "alice", "token": "alice-token"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "auth_attempts_total" in response.text
        assert "upstream_queries_total" in response.text

    def test_metrics_disabled(self, sync_plugin):
        settings = Settings(organization="acme", token="org-token", metrics_enabled=False)

        with TestClient(create_app(settings=settings, plugin=sync_plugin)) as client:
            response = client.get("/metrics")

        assert response.status_code == 403


class TestMiddleware:
    """Test request middleware"""

    def test_correlation_id_is_propagated(self, client):
        response = client.post(
            f"{API}/permissions",
            json={"username": "carol"},
            headers={"X-Correlation-ID": "test-correlation-123"},
        )

        assert response.headers["X-Correlation-ID"] == "test-correlation-123"
        assert response.headers["X-Request-ID"] == "test-correlation-123"
        assert response.headers["X-Response-Time"].endswith("ms")

    def test_correlation_id_is_generated(self, client):
        response = client.get("/health")

        assert response.headers["X-Correlation-ID"]

    def test_malformed_correlation_id_is_replaced(self, client):
        response = client.post(
            f"{API}/permissions",
            json={"username": "carol"},
            headers={"X-Correlation-ID": "bad id with spaces"},
        )

        correlation_id = response.headers["X-Correlation-ID"]
        assert correlation_id != "bad id with spaces"
        assert len(correlation_id) == 32
        assert response.headers["X-Request-ID"] == correlation_id

    def test_error_carries_correlation_id(self, client):
        response = client.post(
            f"{API}/authenticate",
            json={"username": "alice", "token": "bob-token"},
            headers={"X-Correlation-ID": "corr-401"},
        )

        assert response.json()["correlation_id"] == "corr-401"


class TestLifespan:
    """Test plugin creation from settings"""

    def test_plugin_is_created_and_closed(self, settings):
        app = create_app(settings=settings)
        aclose = AsyncMock()

        with TestClient(app) as client:
            plugin = app.state.plugin
            plugin.aclose = aclose
            assert plugin.organization == "acme"
            assert client.get("/").json()["status"] == "running"

        aclose.assert_awaited_once()
        assert app.state.plugin is None
