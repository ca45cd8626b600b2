"""
Connector exception hierarchy.

Every error raised at a connector boundary carries a machine readable
``code`` and an HTTP-style ``status_code`` so the API layer can translate it
into an ``HTTPException`` without knowing which vendor SDK produced it.
"""

from typing import Optional


class ConnectorError(Exception):
    """Base class for connector failures."""

    code: str = "CONNECTOR_ERROR"
    status_code: int = 500

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class ConnectorConfigError(ConnectorError, ValueError):
    """Raised when required connector configuration is missing or invalid."""

    code = "CONFIG_ERROR"
    status_code = 400


class ConnectorNotInitializedError(ConnectorError):
    """Raised when an operation runs before ``initialize()``."""

    code = "NOT_INITIALIZED"
    status_code = 409


class DocumentNotFoundError(ConnectorError):
    """Raised when a document or path does not exist in the source system."""

    code = "NOT_FOUND"
    status_code = 404


class SiteNotFoundError(DocumentNotFoundError):
    """Raised when a SharePoint site cannot be resolved."""


class DeltaTokenExpiredError(ConnectorError):
    """Raised when the Microsoft Graph delta token has expired."""

    code = "DELTA_TOKEN_EXPIRED"
    status_code = 410
