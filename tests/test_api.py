"""
API tests for the connector endpoints.

An in-memory connector is placed in the registry so the routers, the
registry's generic sync/test paths and the health service run for real.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from docsync.config import settings
from docsync.connectors.adls import ADLSGen2Connector
from docsync.connectors.base import BaseConnector, ConnectionStatus
from docsync.connectors.errors import ConnectorError
from docsync.main import app
from docsync.services.connector_health_service import ConnectorType, connector_health_service
from docsync.services.connector_registry import ConnectorRegistry, connector_registry


class PagedConnector(BaseConnector):
    """Serves two pages of documents."""

    PAGES = {
        None: {"documents": [{"id": "a", "size": 10}, {"id": "b", "size": 20}], "continuation_token": "p2"},
        "p2": {"documents": [{"id": "c", "size": 5}], "continuation_token": None},
    }

    def __init__(self, connector_id="mem-1", healthy=True):
        super().__init__(connector_id, "custom", {})
        self.healthy = healthy

    async def initialize(self):
        self.is_initialized = True
        self._set_connection_status(ConnectionStatus.CONNECTED)

    async def perform_health_check(self):
        message = "ok" if self.healthy else "store unreachable"
        return {"healthy": self.healthy, "message": message, "details": {}}

    async def list_documents(self, continuation_token=None, **options):
        return self.PAGES[continuation_token]

    async def get_document(self, document_id):
        raise NotImplementedError

    async def get_document_metadata(self, document_id):
        raise NotImplementedError


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def connector():
    conn = PagedConnector()
    connector_registry.register(conn)
    connector_health_service.register_connector(conn.connector_id, ConnectorType.CUSTOM)
    yield conn
    connector_registry.unregister(conn.connector_id)


class TestSystemEndpoints:
    """Test health and root endpoints."""

    def test_health(self, client):
        """Test the health endpoint at both prefixes."""
        for path in ("/health", "/api/v1/health"):
            response = client.get(path)
            assert response.status_code == 200
            body = response.json()
            assert body["status"] == "healthy"
            assert body["overall_connector_status"] == "unknown"

    def test_root(self, client):
        """Test the root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"


class TestConnectorReadEndpoints:
    """Test status and health read endpoints."""

    def test_list_connectors(self, client, connector):
        """Test all connector states are listed."""
        response = client.get("/api/v1/connectors")
        assert response.status_code == 200
        assert [c["connector_id"] for c in response.json()] == ["mem-1"]

    def test_summary_and_dashboard(self, client, connector):
        """Test summary and dashboard endpoints."""
        summary = client.get("/api/v1/connectors/summary").json()
        assert summary["total_connectors"] == 1
        dashboard = client.get("/api/v1/connectors/dashboard").json()
        assert dashboard["connectors"][0]["id"] == "mem-1"

    def test_get_connector(self, client, connector):
        """Test connector detail merges runtime and health state."""
        response = client.get("/api/v1/connectors/mem-1")
        assert response.status_code == 200
        body = response.json()
        assert body["connector"]["connection_status"] == "disconnected"
        assert body["health"]["status"] == "unknown"

    def test_unknown_connector(self, client):
        """Test unknown ids return 404."""
        for path in ("/api/v1/connectors/nope", "/api/v1/connectors/nope/metrics",
                     "/api/v1/connectors/nope/errors", "/api/v1/connectors/nope/error-patterns"):
            assert client.get(path).status_code == 404
        assert client.post("/api/v1/connectors/nope/sync", json={}).status_code == 404
        assert client.post("/api/v1/connectors/nope/enabled", json={"enabled": False}).status_code == 404

    def test_metrics_errors_patterns(self, client, connector):
        """Test metrics, error history and patterns for a connector."""
        connector_health_service.track_sync_error("mem-1", {"type": "timeout", "message": "timed out"})

        metrics = client.get("/api/v1/connectors/mem-1/metrics").json()
        assert metrics["current_errors_in_window"] == 1
        errors = client.get("/api/v1/connectors/mem-1/errors", params={"limit": 5}).json()
        assert errors[0]["type"] == "timeout"
        patterns = client.get("/api/v1/connectors/mem-1/error-patterns").json()
        assert patterns["by_type"]["timeout"]["count"] == 1


class TestConnectorActions:
    """Test enable, reset, test and sync actions."""

    def test_enable_disable(self, client, connector):
        """Test disabling a connector."""
        response = client.post("/api/v1/connectors/mem-1/enabled", json={"enabled": False})
        assert response.status_code == 200
        assert response.json()["status"] == "disconnected"

    def test_reset_metrics(self, client, connector):
        """Test resetting metrics."""
        response = client.post("/api/v1/connectors/mem-1/reset-metrics")
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_connection_test(self, client, connector):
        """Test a healthy connection test initializes the connector."""
        response = client.post("/api/v1/connectors/mem-1/test")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert connector.is_initialized is True
        assert connector_health_service.get_connector_status("mem-1")["status"] == "healthy"

    def test_connection_test_failure(self, client, connector):
        """Test a failed connection test is reported in the body."""
        connector.healthy = False
        body = client.post("/api/v1/connectors/mem-1/test").json()
        assert body["success"] is False
        assert body["error"] == "store unreachable"

    def test_sync_pages_through_listing(self, client, connector):
        """Test connectors without delta sync page through their listing."""
        response = client.post("/api/v1/connectors/mem-1/sync", json={"full_sync": True})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["documents_processed"] == 3
        assert body["bytes_processed"] == 35

        history = client.get("/api/v1/connectors/sync-history", params={"connector_id": "mem-1"}).json()
        assert history[0]["status"] == "success"

    def test_sync_connector_error(self, client, connector):
        """Test connector errors keep their status code."""
        error = ConnectorError("Delta token has expired", code="DELTA_TOKEN_EXPIRED", status_code=410)
        with patch.object(connector_registry, "run_sync", new=AsyncMock(side_effect=error)):
            response = client.post("/api/v1/connectors/mem-1/sync")
        assert response.status_code == 410
        assert response.json()["detail"] == "Delta token has expired"

    def test_sync_unexpected_error(self, client, connector):
        """Test unexpected errors become 500 responses."""
        with patch.object(connector_registry, "run_sync", new=AsyncMock(side_effect=RuntimeError("boom"))):
            response = client.post("/api/v1/connectors/mem-1/sync")
        assert response.status_code == 500


class TestRegistry:
    """Test the connector registry."""

    def test_build_from_settings_without_configuration(self):
        """Test nothing is built when no connector is configured."""
        registry = ConnectorRegistry()
        assert registry.build_from_settings() == []
        assert len(registry) == 0

    def test_partial_sharepoint_settings_are_skipped(self, monkeypatch):
        """Test SharePoint settings missing tenant and secret skip that connector only."""
        monkeypatch.setattr(settings, "sharepoint_site_url", "https://contoso.sharepoint.com")
        monkeypatch.setattr(settings, "sharepoint_client_id", "client")
        monkeypatch.setattr(settings, "sharepoint_tenant_id", None)
        monkeypatch.setattr(settings, "azure_ad_tenant_id", None)
        monkeypatch.setattr(settings, "sharepoint_client_secret", None)
        monkeypatch.setattr(settings, "sharepoint_certificate_path", None)
        monkeypatch.setattr(settings, "adls_account_name", "account")
        monkeypatch.setattr(settings, "adls_file_system_name", "docs")
        monkeypatch.setattr(settings, "adls_authentication_type", "storage_key")
        monkeypatch.setattr(settings, "adls_storage_key", "a2V5")

        registry = ConnectorRegistry()
        built = registry.build_from_settings()

        assert [type(c) for c in built] == [ADLSGen2Connector]
        assert len(registry) == 1

    def test_invalid_adls_auth_type_is_skipped(self, monkeypatch):
        """Test an unknown ADLS authentication type skips the connector."""
        monkeypatch.setattr(settings, "adls_account_name", "account")
        monkeypatch.setattr(settings, "adls_file_system_name", "docs")
        monkeypatch.setattr(settings, "adls_authentication_type", "managed_identity")

        registry = ConnectorRegistry()
        assert registry.build_from_settings() == []
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_initialize_failure_is_reported(self):
        """Test initialization failures are logged and tracked, not raised."""
        registry = ConnectorRegistry()
        conn = PagedConnector("mem-2")
        conn.initialize = AsyncMock(side_effect=ConnectorError("bad credentials"))
        registry.register(conn)
        connector_health_service.register_connector("mem-2", ConnectorType.CUSTOM)

        assert await registry.initialize_all() == {"mem-2": False}
        assert connector_health_service.get_error_history("mem-2")[0]["type"] == "initialization_failed"

    @pytest.mark.asyncio
    async def test_close_all(self):
        """Test close_all disconnects and empties the registry."""
        registry = ConnectorRegistry()
        conn = PagedConnector("mem-3")
        await conn.initialize()
        registry.register(conn)

        await registry.close_all()
        assert conn.connection_status == ConnectionStatus.DISCONNECTED
        assert "mem-3" not in registry
