"""
docsync API Pydantic Models.

Request and response models for the connector API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Service health response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Service version")
    connectors_registered: int = Field(default=0, description="Connectors in the registry")
    overall_connector_status: str = Field(default="unknown", description="Aggregated connector status")


class EnabledRequest(BaseModel):
    """Enable or disable a connector."""

    enabled: bool = Field(..., description="Whether the connector is enabled")


class SyncRequest(BaseModel):
    """Request model for triggering a sync run."""

    full_sync: bool = Field(
        default=False,
        description="Ignore stored delta tokens and resync every library",
    )


class ConnectionTestResponse(BaseModel):
    """Outcome of a connection test."""

    connector_id: str
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class SyncResponse(BaseModel):
    """Result of a sync run."""

    connector_id: str
    sync_id: Optional[str] = None
    sync_type: Optional[str] = None
    status: str
    documents_processed: int = 0
    documents_failed: int = 0
    bytes_processed: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class ConnectorDetail(BaseModel):
    """Connector runtime status merged with its health state."""

    connector_id: str
    connector: Dict[str, Any] = Field(..., description="Connector runtime status")
    health: Optional[Dict[str, Any]] = Field(default=None, description="Health service state")
