"""
Unit tests for BaseConnector.

Tests the shared status bookkeeping, configuration validation and
document_exists behaviour using a minimal in-memory connector.
"""

import pytest

from docsync.connectors.base import BaseConnector, ConnectionStatus
from docsync.connectors.errors import (
    ConnectorConfigError,
    ConnectorError,
    ConnectorNotInitializedError,
    DocumentNotFoundError,
)


class InMemoryConnector(BaseConnector):
    def __init__(self, config=None, documents=None):
        super().__init__("memory-1", "custom", config)
        self.documents = documents or {}

    async def initialize(self):
        self._validate_config(["root"])
        self.is_initialized = True
        self._set_connection_status(ConnectionStatus.CONNECTED)

    async def perform_health_check(self):
        return {"healthy": True, "message": "ok", "details": {}}

    async def list_documents(self, **options):
        self._ensure_initialized()
        return {"documents": list(self.documents.values()), "continuation_token": None}

    async def get_document(self, document_id):
        metadata = await self.get_document_metadata(document_id)
        return {"metadata": metadata, "content": b"", "content_type": metadata["mime_type"]}

    async def get_document_metadata(self, document_id):
        if document_id == "boom":
            raise ConnectorError("backend unavailable", code="BACKEND_DOWN", status_code=503)
        if document_id not in self.documents:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return self.documents[document_id]


@pytest.fixture
def connector():
    return InMemoryConnector(
        config={"root": "/data"},
        documents={"a.txt": {"id": "a.txt", "name": "a.txt", "mime_type": "text/plain"}},
    )


class TestBaseConnectorLifecycle:
    """Test initialization and status reporting."""

    def test_initial_status(self, connector):
        """Test a new connector starts disconnected and uninitialized."""
        status = connector.get_status()
        assert status["connector_id"] == "memory-1"
        assert status["connector_type"] == "custom"
        assert status["connection_status"] == "disconnected"
        assert status["is_initialized"] is False
        assert status["last_error"] is None

    @pytest.mark.asyncio
    async def test_initialize_sets_connected(self, connector):
        """Test initialize marks the connector connected."""
        await connector.initialize()
        assert connector.connection_status == ConnectionStatus.CONNECTED
        assert connector.get_status()["is_initialized"] is True

    @pytest.mark.asyncio
    async def test_missing_config_lists_fields(self):
        """Test validation names every missing field."""
        connector = InMemoryConnector(config={})
        with pytest.raises(ConnectorConfigError) as exc_info:
            await connector.initialize()
        assert "root" in str(exc_info.value)
        assert exc_info.value.code == "CONFIG_ERROR"
        assert isinstance(exc_info.value, ValueError)

    @pytest.mark.asyncio
    async def test_operation_before_initialize(self, connector):
        """Test operations require initialize()."""
        with pytest.raises(ConnectorNotInitializedError):
            await connector.list_documents()

    @pytest.mark.asyncio
    async def test_disconnect(self, connector):
        """Test disconnect resets the connection state."""
        await connector.initialize()
        await connector.disconnect()
        assert connector.connection_status == ConnectionStatus.DISCONNECTED
        assert connector.is_initialized is False

    def test_record_error(self, connector):
        """Test the last error keeps message, code and timestamp."""
        connector._record_error(ConnectorError("bad things", code="BAD"))
        assert connector.last_error["message"] == "bad things"
        assert connector.last_error["code"] == "BAD"
        assert connector.last_error["timestamp"].endswith("+00:00")

    def test_config_object(self):
        """Test configuration may be an object instead of a dict."""

        class Config:
            root = "/srv"

        connector = InMemoryConnector(config=Config())
        assert connector._config_value("root") == "/srv"
        assert connector._config_value("missing") is None


class TestDocumentExists:
    """Test document_exists translation of not-found errors."""

    @pytest.mark.asyncio
    async def test_existing_document(self, connector):
        """Test an existing document is reported as present."""
        assert await connector.document_exists("a.txt") is True

    @pytest.mark.asyncio
    async def test_missing_document(self, connector):
        """Test a NOT_FOUND error maps to False."""
        assert await connector.document_exists("missing.txt") is False

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, connector):
        """Test non not-found errors are re-raised."""
        with pytest.raises(ConnectorError) as exc_info:
            await connector.document_exists("boom")
        assert exc_info.value.status_code == 503
