"""Document source connectors."""

from .base import BaseConnector, ConnectionStatus
from .errors import (
    ConnectorConfigError,
    ConnectorError,
    ConnectorNotInitializedError,
    DeltaTokenExpiredError,
    DocumentNotFoundError,
    SiteNotFoundError,
)

__all__ = [
    "BaseConnector",
    "ConnectionStatus",
    "ConnectorConfigError",
    "ConnectorError",
    "ConnectorNotInitializedError",
    "DeltaTokenExpiredError",
    "DocumentNotFoundError",
    "SiteNotFoundError",
]
