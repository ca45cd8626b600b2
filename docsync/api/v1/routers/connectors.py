"""
Connectors Router - connector status, health and sync endpoints.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query

from ....connectors.base import BaseConnector
from ....connectors.errors import ConnectorError
from ....models import (
    ConnectionTestResponse,
    ConnectorDetail,
    EnabledRequest,
    SyncRequest,
    SyncResponse,
)
from ....services.connector_health_service import connector_health_service
from ....services.connector_registry import connector_registry

logger = logging.getLogger("docsync.api.connectors")

router = APIRouter(prefix="/connectors", tags=["connectors"])


def _get_connector(connector_id: str) -> BaseConnector:
    connector = connector_registry.get(connector_id)
    if connector is None:
        raise HTTPException(status_code=404, detail=f"Connector not found: {connector_id}")
    return connector


def _require_health_result(connector_id: str, result: Optional[Any]) -> Any:
    if result is None or result == connector_health_service.NOT_REGISTERED:
        raise HTTPException(status_code=404, detail=f"Connector not found: {connector_id}")
    return result


@router.get("")
async def list_connectors() -> List[Dict[str, Any]]:
    """Health state of every registered connector."""
    return connector_health_service.get_all_connectors_status()


@router.get("/summary")
async def get_health_summary() -> Dict[str, Any]:
    return connector_health_service.get_health_summary()


@router.get("/dashboard")
async def get_dashboard() -> Dict[str, Any]:
    return connector_health_service.get_dashboard_widget()


@router.get("/sync-history")
async def get_sync_history(
    connector_id: Optional[str] = Query(default=None, description="Only this connector's runs"),
    limit: int = Query(default=20, ge=1, le=500),
) -> List[Dict[str, Any]]:
    return connector_health_service.get_sync_history(connector_id, limit=limit)


@router.get("/{connector_id}", response_model=ConnectorDetail)
async def get_connector(connector_id: str) -> ConnectorDetail:
    """Connector runtime status together with its health state."""
    connector = _get_connector(connector_id)
    return ConnectorDetail(
        connector_id=connector_id,
        connector=connector.get_status(),
        health=connector_health_service.get_connector_status(connector_id),
    )


@router.get("/{connector_id}/metrics")
async def get_connector_metrics(connector_id: str) -> Dict[str, Any]:
    return _require_health_result(connector_id, connector_health_service.get_connector_metrics(connector_id))


@router.get("/{connector_id}/errors")
async def get_connector_errors(
    connector_id: str,
    limit: int = Query(default=20, ge=1, le=500),
) -> List[Dict[str, Any]]:
    _require_health_result(connector_id, connector_health_service.get_connector_status(connector_id))
    return connector_health_service.get_error_history(connector_id, limit=limit)


@router.get("/{connector_id}/error-patterns")
async def get_error_patterns(connector_id: str) -> Dict[str, Any]:
    return _require_health_result(connector_id, connector_health_service.analyze_error_patterns(connector_id))


@router.post("/{connector_id}/enabled")
async def set_connector_enabled(connector_id: str, request: EnabledRequest) -> Dict[str, Any]:
    return _require_health_result(
        connector_id,
        connector_health_service.set_connector_enabled(connector_id, request.enabled),
    )


@router.post("/{connector_id}/reset-metrics")
async def reset_connector_metrics(connector_id: str) -> Dict[str, Any]:
    return _require_health_result(connector_id, connector_health_service.reset_connector_metrics(connector_id))


@router.post("/{connector_id}/test", response_model=ConnectionTestResponse)
async def test_connector(connector_id: str) -> ConnectionTestResponse:
    """
    Test a connector's connection to its source system.

    A failed test is reported in the response body, not as an HTTP error.
    """
    connector = _get_connector(connector_id)

    try:
        result = await connector_registry.test_connection(connector)
    except ConnectorError as e:
        logger.warning(f"Connection test error for {connector_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.exception(f"Unexpected error testing connector {connector_id}")
        raise HTTPException(status_code=500, detail=f"Internal error: {e}")

    details = {k: v for k, v in result.items() if k not in ("success", "message", "error")}
    return ConnectionTestResponse(
        connector_id=connector_id,
        success=bool(result.get("success")),
        message=result.get("message"),
        error=result.get("error"),
        details=details,
    )


@router.post("/{connector_id}/sync", response_model=SyncResponse)
async def sync_connector(connector_id: str, request: Optional[SyncRequest] = None) -> SyncResponse:
    """
    Run a sync for a connector and wait for it to finish.

    SharePoint connectors run a delta sync (``full_sync`` discards stored
    delta tokens); other connectors page through their full listing.
    """
    connector = _get_connector(connector_id)
    full_sync = request.full_sync if request else False

    try:
        result = await connector_registry.run_sync(connector, full_sync=full_sync)
    except ConnectorError as e:
        logger.warning(f"Sync error for {connector_id}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.exception(f"Unexpected error syncing connector {connector_id}")
        raise HTTPException(status_code=500, detail=f"Internal error: {e}")

    return SyncResponse(
        connector_id=connector_id,
        sync_id=result.get("sync_id"),
        sync_type=result.get("sync_type"),
        status=result["status"],
        documents_processed=result.get("documents_processed") or 0,
        documents_failed=result.get("documents_failed") or 0,
        bytes_processed=result.get("bytes_processed") or 0,
        errors=result.get("errors") or [],
    )
