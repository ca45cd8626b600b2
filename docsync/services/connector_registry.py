"""
Connector registry.

Holds the live connector instances by id. At startup the SharePoint and ADLS
Gen2 connectors are built from settings when their required values are
present; on shutdown every connector is disconnected.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from ..config import settings
from ..connectors.adls import ADLSGen2Connector, get_adls_gen2_connector
from ..connectors.base import BaseConnector
from ..connectors.errors import ConnectorConfigError
from ..connectors.sharepoint import SharePointConnector
from .connector_health_service import (
    ConnectorHealthService,
    ConnectorType,
    SyncStatus,
    connector_health_service,
)

logger = logging.getLogger("docsync.registry")


class ConnectorRegistry:
    def __init__(self, health_service: Optional[ConnectorHealthService] = None):
        self._connectors: Dict[str, BaseConnector] = {}
        self._health_service = health_service

    @property
    def health_service(self) -> ConnectorHealthService:
        return self._health_service or connector_health_service

    def register(self, connector: BaseConnector) -> BaseConnector:
        self._connectors[connector.connector_id] = connector
        # SharePoint connectors register themselves on initialize()
        if isinstance(connector, ADLSGen2Connector):
            self.health_service.register_connector(
                connector.connector_id,
                ConnectorType.ADLS,
                connection_config=connector.config.to_dict(),
                is_enabled=True,
            )
        logger.info(f"Connector added to registry: {connector.connector_id} ({connector.connector_type})")
        return connector

    def unregister(self, connector_id: str) -> Optional[BaseConnector]:
        return self._connectors.pop(connector_id, None)

    def get(self, connector_id: str) -> Optional[BaseConnector]:
        return self._connectors.get(connector_id)

    def list(self) -> List[BaseConnector]:
        return list(self._connectors.values())

    def __contains__(self, connector_id: str) -> bool:
        return connector_id in self._connectors

    def __len__(self) -> int:
        return len(self._connectors)

    def build_from_settings(self) -> List[BaseConnector]:
        """Create the connectors whose required settings are present.

        A connector whose settings are present but invalid is skipped with a
        warning so the service still starts.
        """
        built: List[BaseConnector] = []

        if settings.sharepoint_configured:
            try:
                built.append(self.register(SharePointConnector()))
            except (ConnectorConfigError, ValueError) as e:
                logger.warning(f"SharePoint connector skipped, invalid configuration: {e}")
        else:
            logger.info("SharePoint connector not configured (SHAREPOINT_SITE_URL / SHAREPOINT_CLIENT_ID)")

        if settings.adls_configured:
            try:
                built.append(self.register(get_adls_gen2_connector()))
            except (ConnectorConfigError, ValueError) as e:
                logger.warning(f"ADLS Gen2 connector skipped, invalid configuration: {e}")
        else:
            logger.info("ADLS Gen2 connector not configured (ADLS_ACCOUNT_NAME / ADLS_FILE_SYSTEM_NAME)")

        return built

    async def initialize_all(self) -> Dict[str, bool]:
        """Initialize every connector; failures are logged and reported as False."""
        results: Dict[str, bool] = {}
        for connector in self.list():
            try:
                await connector.initialize()
                results[connector.connector_id] = True
            except Exception as e:
                logger.warning(f"Failed to initialize connector {connector.connector_id}: {e}")
                self.health_service.track_sync_error(connector.connector_id, {
                    "type": "initialization_failed",
                    "message": str(e),
                    "code": getattr(e, "code", None),
                })
                results[connector.connector_id] = False
        return results

    async def test_connection(self, connector: BaseConnector) -> Dict[str, Any]:
        if isinstance(connector, SharePointConnector):
            return await connector.test_connection()

        if not connector.is_initialized:
            try:
                await connector.initialize()
            except Exception as e:
                return {"success": False, "error": str(e), "message": "Connection failed"}

        async def _check() -> Dict[str, Any]:
            return await connector.perform_health_check()

        result = await self.health_service.perform_health_check(connector.connector_id, _check)
        if result.get("success") and result.get("healthy"):
            return {"success": True, "message": result.get("message"), "duration": result.get("duration")}
        return {"success": False, "error": result.get("message") or result.get("error"), "message": "Connection failed"}

    async def run_sync(self, connector: BaseConnector, full_sync: bool = False) -> Dict[str, Any]:
        """Run a sync for any registered connector and return its result."""
        if isinstance(connector, SharePointConnector):
            return await connector.sync_documents(full_sync=full_sync)
        return await self._sync_by_listing(connector)

    async def _sync_by_listing(self, connector: BaseConnector) -> Dict[str, Any]:
        if not connector.is_initialized:
            await connector.initialize()

        sync_id = f"sync-{int(time.time() * 1000)}"
        self.health_service.track_sync_start(connector.connector_id, sync_id=sync_id, sync_type="full")

        documents_processed = 0
        bytes_processed = 0
        pages = 0
        token: Optional[str] = None

        try:
            while True:
                page = await connector.list_documents(continuation_token=token)
                pages += 1
                for doc in page["documents"]:
                    documents_processed += 1
                    bytes_processed += doc.get("size") or 0
                token = page.get("continuation_token")
                if not token:
                    break
        except Exception as e:
            self.health_service.track_sync_complete(connector.connector_id, {
                "status": SyncStatus.FAILURE,
                "documents_processed": documents_processed,
                "errors": [{"error": str(e)}],
            })
            raise

        self.health_service.track_sync_complete(connector.connector_id, {
            "status": SyncStatus.SUCCESS,
            "documents_processed": documents_processed,
            "bytes_processed": bytes_processed,
        })
        logger.info(
            f"Listing sync {sync_id} completed for {connector.connector_id}: "
            f"{documents_processed} documents in {pages} pages"
        )
        return {
            "sync_id": sync_id,
            "sync_type": "full",
            "status": SyncStatus.SUCCESS.value,
            "documents_processed": documents_processed,
            "bytes_processed": bytes_processed,
            "pages": pages,
            "errors": [],
        }

    async def close_all(self) -> None:
        for connector in self.list():
            try:
                await connector.disconnect()
            except Exception as e:
                logger.warning(f"Error disconnecting connector {connector.connector_id}: {e}")
        self._connectors.clear()


# Global registry instance
connector_registry = ConnectorRegistry()
