from .connector import SharePointConnector, create_sharepoint_connector
from .documents import SharePointConnectionConfig, SharePointDeltaState, SharePointDocument
from .graph_client import GraphClient, TokenManager

__all__ = [
    "GraphClient",
    "SharePointConnectionConfig",
    "SharePointConnector",
    "SharePointDeltaState",
    "SharePointDocument",
    "TokenManager",
    "create_sharepoint_connector",
]
