"""
Base connector abstraction.

Defines the interface every external document source (SharePoint, ADLS Gen2,
...) implements, plus the shared bookkeeping for connection status, last
error and configuration validation.

Document metadata returned by connectors is a plain dict with at least:
    id, name, path, mime_type, size, created_at, modified_at
and optionally content_hash, etag, version and connector specific keys.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import ConnectorConfigError, ConnectorNotInitializedError

logger = logging.getLogger("docsync.connectors")


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class BaseConnector(ABC):
    """
    Abstract base class for all connectors.

    Subclasses must implement ``initialize``, ``perform_health_check``,
    ``list_documents``, ``get_document`` and ``get_document_metadata``.
    ``initialize()`` must be awaited before any other operation.
    """

    def __init__(self, connector_id: str, connector_type: str, config: Any = None):
        self.connector_id = connector_id
        self.connector_type = connector_type
        self.config = config if config is not None else {}
        self.connection_status = ConnectionStatus.DISCONNECTED
        self.last_error: Optional[Dict[str, Any]] = None
        self.is_initialized = False
        self.initialization_time: Optional[str] = None

    @abstractmethod
    async def initialize(self) -> None:
        """Establish connections and validate credentials."""

    @abstractmethod
    async def perform_health_check(self) -> Dict[str, Any]:
        """Return ``{"healthy": bool, "message": str, "details": {...}}``."""

    @abstractmethod
    async def list_documents(self, **options: Any) -> Dict[str, Any]:
        """Return ``{"documents": [...], "continuation_token": Optional[str]}``."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Dict[str, Any]:
        """Return ``{"metadata": {...}, "content": bytes, "content_type": str}``."""

    @abstractmethod
    async def get_document_metadata(self, document_id: str) -> Dict[str, Any]:
        """Return document metadata without content."""

    async def document_exists(self, document_id: str) -> bool:
        try:
            await self.get_document_metadata(document_id)
            return True
        except Exception as e:
            if getattr(e, "code", None) == "NOT_FOUND" or getattr(e, "status_code", None) == 404:
                return False
            raise

    async def disconnect(self) -> None:
        self.connection_status = ConnectionStatus.DISCONNECTED
        self.is_initialized = False
        logger.info(f"Connector {self.connector_id} disconnected")

    def get_status(self) -> Dict[str, Any]:
        return {
            "connector_id": self.connector_id,
            "connector_type": self.connector_type,
            "connection_status": self.connection_status.value,
            "is_initialized": self.is_initialized,
            "initialization_time": self.initialization_time,
            "last_error": self.last_error,
        }

    def _set_connection_status(self, status: ConnectionStatus, message: Optional[str] = None) -> None:
        previous = self.connection_status
        self.connection_status = status
        if previous != status:
            suffix = f" ({message})" if message else ""
            logger.info(
                f"Connector {self.connector_id} status changed: {previous.value} -> {status.value}{suffix}"
            )

    def _record_error(self, error: BaseException) -> None:
        self.last_error = {
            "message": str(error),
            "code": getattr(error, "code", None),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        logger.error(f"Connector {self.connector_id} error: {error}", exc_info=error)

    def _ensure_initialized(self) -> None:
        if not self.is_initialized:
            raise ConnectorNotInitializedError(
                f"Connector {self.connector_id} is not initialized. Call initialize() first."
            )

    def _config_value(self, field: str) -> Any:
        if isinstance(self.config, dict):
            return self.config.get(field)
        return getattr(self.config, field, None)

    def _validate_config(self, required_fields: List[str]) -> None:
        missing = [field for field in required_fields if not self._config_value(field)]
        if missing:
            raise ConnectorConfigError(f"Missing required configuration: {', '.join(missing)}")
