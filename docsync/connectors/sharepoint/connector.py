"""
SharePoint Online connector.

Pulls documents from SharePoint document libraries through Microsoft Graph:
- Site resolution and document library enumeration
- Full and incremental (delta query) sync with pagination
- Folder / file type filtering
- Content download
- Permission retrieval mapped to ``allowed_groups`` for security trimming
- Health reporting through ``connector_health_service``

Required application permissions: Sites.Read.All and Files.Read.All.
"""

import asyncio
import inspect
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import httpx

from ...services.connector_health_service import (
    ConnectorHealthService,
    ConnectorType,
    SyncStatus,
    connector_health_service,
)
from ..base import BaseConnector, ConnectionStatus
from ..errors import (
    ConnectorError,
    DeltaTokenExpiredError,
    DocumentNotFoundError,
    SiteNotFoundError,
)
from .documents import (
    CONNECTOR_TYPE,
    SharePointConnectionConfig,
    SharePointDeltaState,
    SharePointDocument,
    file_extension,
    simplify_permission,
)
from .graph_client import GraphClient, TokenManager

logger = logging.getLogger("docsync.sharepoint")

Callback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_code(error: BaseException) -> Any:
    code = getattr(error, "code", None)
    if code:
        return code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return getattr(error, "status_code", None)


async def _emit(callback: Optional[Callback], payload: Dict[str, Any]) -> None:
    if callback is None:
        return
    result = callback(payload)
    if inspect.isawaitable(result):
        await result


def _empty_library_result(library: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "library_id": library["id"],
        "library_name": library.get("name"),
        "documents_found": 0,
        "documents_processed": 0,
        "documents_added": 0,
        "documents_modified": 0,
        "documents_deleted": 0,
        "documents_failed": 0,
        "bytes_processed": 0,
        "permissions_synced": 0,
        "permissions_failed": 0,
        "errors": [],
    }


SUMMED_COUNTERS = (
    "documents_found",
    "documents_processed",
    "documents_added",
    "documents_modified",
    "documents_deleted",
    "documents_failed",
    "bytes_processed",
    "permissions_synced",
    "permissions_failed",
)


class SharePointConnector(BaseConnector):
    """
    Connector for a single SharePoint site.

    Delta links are kept per drive in ``delta_states``; callers persist them
    with ``get_all_delta_states()`` and restore them with ``set_delta_state()``.
    """

    def __init__(
        self,
        config: Optional[Union[SharePointConnectionConfig, Dict[str, Any]]] = None,
        health_service: Optional[ConnectorHealthService] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_delay_seconds: Optional[float] = None,
    ):
        if not isinstance(config, SharePointConnectionConfig):
            config = SharePointConnectionConfig(**(config or {}))

        connector_id = "sharepoint-" + re.sub(r"[^a-zA-Z0-9]", "-", config.site_url)
        super().__init__(connector_id, CONNECTOR_TYPE, config)

        self.graph: Optional[GraphClient] = None
        self.site_id: Optional[str] = None
        self.site_name: Optional[str] = None
        self.site_web_url: Optional[str] = None
        self.delta_states: Dict[str, SharePointDeltaState] = {}
        self.health_service: Optional[ConnectorHealthService] = None

        self._health_service = health_service
        self._transport = transport
        self._retry_delay_seconds = retry_delay_seconds

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def initialize(self) -> None:
        if self.is_initialized:
            return

        self._set_connection_status(ConnectionStatus.CONNECTING)
        logger.info(f"Initializing SharePoint connector {self.connector_id}")

        try:
            self._initialize_graph_client()
            await self._resolve_site_id()

            self.health_service = self._health_service or connector_health_service
            self.health_service.register_connector(
                self.connector_id,
                ConnectorType.SHAREPOINT,
                connection_config=self.config.to_dict(),
                is_enabled=True,
            )

            self.is_initialized = True
            self.initialization_time = _utc_now_iso()
            self._set_connection_status(ConnectionStatus.CONNECTED)
            logger.info(f"SharePoint connector {self.connector_id} initialized (site_id={self.site_id})")
        except Exception as e:
            self._set_connection_status(ConnectionStatus.ERROR, str(e))
            self._record_error(e)
            await self._close_graph_client()
            raise

    def _initialize_graph_client(self) -> None:
        token_manager = TokenManager(
            tenant_id=self.config.tenant_id,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            certificate_path=self.config.certificate_path,
        )
        self.graph = GraphClient(
            token_manager,
            timeout_ms=self.config.timeout_ms,
            retry_delay_seconds=self._retry_delay_seconds,
            transport=self._transport,
        )
        logger.debug(f"Microsoft Graph client initialized for {self.connector_id}")

    async def _close_graph_client(self) -> None:
        if self.graph is not None:
            await self.graph.close()
            self.graph = None

    async def _resolve_site_id(self) -> None:
        identifier = self.config.get_site_identifier()
        response = await self.graph.request(
            "GET", f"/sites/{identifier}", params={"$select": "id,displayName,webUrl"}
        )
        if response.status_code == 404:
            raise SiteNotFoundError(f"SharePoint site not found: {identifier}")
        response.raise_for_status()

        site = response.json()
        self.site_id = site.get("id")
        self.site_name = site.get("displayName")
        self.site_web_url = site.get("webUrl")
        logger.info(f"SharePoint site resolved: {self.site_name} ({self.site_id})")

    async def _ensure_ready(self) -> None:
        if not self.is_initialized:
            await self.initialize()

    async def disconnect(self) -> None:
        logger.info(f"Disconnecting SharePoint connector {self.connector_id}")
        if self.health_service:
            self.health_service.set_connector_enabled(self.connector_id, False)
        await self._close_graph_client()
        await super().disconnect()

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------
    async def test_connection(self) -> Dict[str, Any]:
        """Fetch the site and its first drive; report the outcome to the health service."""
        try:
            await self._ensure_ready()
            started = time.monotonic()

            site, drives = await asyncio.gather(
                self.graph.get_json(f"/sites/{self.site_id}", params={"$select": "id,displayName"}),
                self.graph.get_json(f"/sites/{self.site_id}/drives", params={"$select": "id,name", "$top": 1}),
            )
            latency_ms = int((time.monotonic() - started) * 1000)

            async def _healthy() -> Dict[str, Any]:
                return {"healthy": True, "message": f"Connected to site: {site.get('displayName')}"}

            await self.health_service.perform_health_check(self.connector_id, _healthy)

            return {
                "success": True,
                "site_id": site.get("id"),
                "site_name": site.get("displayName"),
                "drives_available": len(drives.get("value") or []),
                "latency_ms": latency_ms,
                "message": "Connection successful",
            }
        except Exception as e:
            code = _error_code(e)
            logger.warning(f"SharePoint connection test failed for {self.connector_id}: {e}")
            if self.health_service:
                self.health_service.track_sync_error(self.connector_id, {
                    "type": "connection_test_failed",
                    "message": str(e),
                    "code": code,
                })
            return {
                "success": False,
                "error": str(e),
                "code": code,
                "message": "Connection failed",
            }

    async def perform_health_check(self) -> Dict[str, Any]:
        result = await self.test_connection()
        if result["success"]:
            return {"healthy": True, "message": f"Connected to site: {result['site_name']}", "details": result}
        return {"healthy": False, "message": f"Connection failed: {result['error']}", "details": result}

    # ------------------------------------------------------------------
    # Libraries
    # ------------------------------------------------------------------
    async def list_document_libraries(self) -> List[Dict[str, Any]]:
        await self._ensure_ready()

        try:
            data = await self.graph.get_json(
                f"/sites/{self.site_id}/drives",
                params={"$select": "id,name,description,driveType,webUrl,quota"},
            )
        except Exception as e:
            logger.error(f"Failed to list document libraries for {self.connector_id}: {e}")
            raise

        libraries = []
        for drive in data.get("value") or []:
            quota = drive.get("quota")
            libraries.append({
                "id": drive.get("id"),
                "name": drive.get("name"),
                "description": drive.get("description"),
                "type": drive.get("driveType"),
                "web_url": drive.get("webUrl"),
                "quota": {
                    "total": quota.get("total"),
                    "used": quota.get("used"),
                    "remaining": quota.get("remaining"),
                } if quota else None,
            })

        if self.config.library_names:
            libraries = [lib for lib in libraries if lib["name"] in self.config.library_names]
        return libraries

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------
    async def sync_documents(
        self,
        full_sync: bool = False,
        on_document: Optional[Callback] = None,
        on_progress: Optional[Callback] = None,
        sync_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Sync every configured library.

        ``on_document`` receives ``added`` / ``modified`` / ``deleted`` events,
        ``on_progress`` receives ``page_complete`` and ``library_complete``
        events. Both may be plain functions or coroutines.

        Returns the aggregated sync result including its ``status``.
        """
        await self._ensure_ready()

        sync_id = sync_id or f"sync-{int(time.time() * 1000)}"
        sync_type = "full" if full_sync else "incremental"
        self.health_service.track_sync_start(self.connector_id, sync_id=sync_id, sync_type=sync_type)
        logger.info(f"Starting SharePoint {sync_type} sync {sync_id} for {self.connector_id}")

        result: Dict[str, Any] = {
            "sync_id": sync_id,
            "sync_type": sync_type,
            "status": SyncStatus.RUNNING.value,
            "start_time": _utc_now_iso(),
            "end_time": None,
            "libraries_processed": 0,
            **{counter: 0 for counter in SUMMED_COUNTERS},
            "errors": [],
        }

        try:
            libraries = await self.list_document_libraries()
            result["libraries_processed"] = len(libraries)

            for library in libraries:
                try:
                    library_result = await self._sync_library(
                        library,
                        full_sync=full_sync,
                        on_document=on_document,
                        on_progress=on_progress,
                    )
                    for counter in SUMMED_COUNTERS:
                        result[counter] += library_result[counter]
                    result["errors"].extend(library_result["errors"])

                    await _emit(on_progress, {
                        "type": "library_complete",
                        "library": library.get("name"),
                        "documents_processed": library_result["documents_processed"],
                    })
                except Exception as e:
                    logger.error(f"Failed to sync library {library.get('name')} ({library.get('id')}): {e}")
                    result["errors"].append({
                        "library_id": library.get("id"),
                        "library_name": library.get("name"),
                        "error": str(e),
                    })
        except Exception as e:
            result["end_time"] = _utc_now_iso()
            result["status"] = SyncStatus.FAILURE.value
            result["errors"].append({"error": str(e)})
            self.health_service.track_sync_complete(self.connector_id, {
                "status": SyncStatus.FAILURE,
                "documents_processed": result["documents_processed"],
                "documents_failed": result["documents_failed"],
                "errors": result["errors"],
            })
            logger.error(f"SharePoint sync {sync_id} failed for {self.connector_id}: {e}")
            raise

        result["end_time"] = _utc_now_iso()
        if result["errors"]:
            status = SyncStatus.PARTIAL if result["documents_processed"] > 0 else SyncStatus.FAILURE
        else:
            status = SyncStatus.SUCCESS
        result["status"] = status.value

        self.health_service.track_sync_complete(self.connector_id, {
            "status": status,
            "documents_processed": result["documents_processed"],
            "documents_failed": result["documents_failed"],
            "bytes_processed": result["bytes_processed"],
            "errors": result["errors"],
        })
        logger.info(
            f"SharePoint sync {sync_id} completed for {self.connector_id}: "
            f"status={status.value} processed={result['documents_processed']}"
        )
        return result

    async def _sync_library(
        self,
        library: Dict[str, Any],
        full_sync: bool = False,
        on_document: Optional[Callback] = None,
        on_progress: Optional[Callback] = None,
    ) -> Dict[str, Any]:
        drive_id = library["id"]

        delta_state = self.delta_states.get(drive_id)
        if delta_state is None or full_sync:
            delta_state = SharePointDeltaState(drive_id)
            self.delta_states[drive_id] = delta_state

        try:
            return await self._run_delta_sync(library, delta_state, on_document, on_progress)
        except DeltaTokenExpiredError:
            if delta_state.is_fresh_sync():
                raise
            logger.warning(f"Delta token expired for library {library.get('name')}, running a full resync")
            delta_state = SharePointDeltaState(drive_id)
            self.delta_states[drive_id] = delta_state
            return await self._run_delta_sync(library, delta_state, on_document, on_progress)

    async def _run_delta_sync(
        self,
        library: Dict[str, Any],
        delta_state: SharePointDeltaState,
        on_document: Optional[Callback],
        on_progress: Optional[Callback],
    ) -> Dict[str, Any]:
        drive_id = library["id"]
        result = _empty_library_result(library)
        url: Optional[str] = delta_state.delta_link or self._initial_delta_url(drive_id)
        page_number = 0

        while url:
            response = await self._execute_delta_query(url)
            page_number += 1
            items = response.get("value") or []

            for item in items:
                result["documents_found"] += 1

                if "deleted" in item:
                    result["documents_deleted"] += 1
                    await _emit(on_document, {
                        "type": "deleted",
                        "id": item.get("id"),
                        "drive_id": drive_id,
                        "name": item.get("name"),
                    })
                    continue

                if "folder" in item:
                    continue

                doc = SharePointDocument(item, drive_id, self.site_id)
                if not self._should_include_file(doc):
                    continue

                try:
                    is_new = delta_state.is_new_item(item.get("createdDateTime"))
                    if self.config.sync_permissions:
                        await self._sync_document_permissions(doc, result)

                    await _emit(on_document, {
                        "type": "added" if is_new else "modified",
                        "document": doc,
                        "metadata": doc.to_document_metadata(),
                    })

                    result["documents_added" if is_new else "documents_modified"] += 1
                    result["documents_processed"] += 1
                    result["bytes_processed"] += doc.size
                except Exception as e:
                    result["documents_failed"] += 1
                    result["errors"].append({"document_id": item.get("id"), "name": item.get("name"), "error": str(e)})
                    logger.warning(f"Failed to process document {item.get('name')} ({item.get('id')}): {e}")

            await _emit(on_progress, {
                "type": "page_complete",
                "library": library.get("name"),
                "page_number": page_number,
                "documents_in_page": len(items),
                "total_processed": result["documents_processed"],
            })

            if response.get("@odata.nextLink"):
                url = response["@odata.nextLink"]
            else:
                if response.get("@odata.deltaLink"):
                    delta_state.update(
                        response["@odata.deltaLink"],
                        result["documents_processed"],
                        result["documents_deleted"],
                    )
                url = None

        return result

    async def _sync_document_permissions(self, doc: SharePointDocument, result: Dict[str, Any]) -> None:
        try:
            raw_permissions = await self.get_raw_permissions(doc.drive_id, doc.id)
        except Exception as e:
            result["permissions_failed"] += 1
            logger.warning(f"Failed to sync permissions for {doc.name} ({doc.id}): {e}")
            return

        doc.set_permissions(
            raw_permissions,
            include_inherited=self.config.include_inherited_permissions,
            roles_to_include=self.config.permission_roles_to_sync,
        )
        result["permissions_synced"] += 1
        logger.debug(f"sharepoint.permissions.synced={len(doc.allowed_groups)} document={doc.id}")

    def _initial_delta_url(self, drive_id: str, page_size: Optional[int] = None) -> str:
        return f"/drives/{drive_id}/root/delta?$top={page_size or self.config.page_size}"

    async def _execute_delta_query(self, url: str) -> Dict[str, Any]:
        response = await self.graph.request("GET", url)
        if response.status_code == 410:
            logger.warning(f"Delta token expired: {url}")
            raise DeltaTokenExpiredError("Delta token has expired. Perform a full sync to obtain a new token.")
        response.raise_for_status()
        return response.json()

    def _should_include_file(self, doc: SharePointDocument) -> bool:
        if self.config.file_types and file_extension(doc.name) not in self.config.file_types:
            return False

        path = doc.path.lower()
        if any(excluded.lower() in path for excluded in self.config.excluded_folders):
            return False
        if self.config.included_folders and not any(
            included.lower() in path for included in self.config.included_folders
        ):
            return False
        return True

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------
    async def list_documents(
        self,
        library: Optional[str] = None,
        extensions: Optional[List[str]] = None,
        limit: Optional[int] = None,
        continuation_token: Optional[str] = None,
        **options: Any,
    ) -> Dict[str, Any]:
        """
        Return one page of documents from a library's delta feed.

        ``library`` is a library name or drive id (defaults to the first
        configured library). The stored delta state is not touched. The
        returned ``continuation_token`` is the next page link, or ``None`` when
        the feed is exhausted.
        """
        await self._ensure_ready()

        drive_id = await self._resolve_library_id(library)
        if drive_id is None:
            return {"documents": [], "continuation_token": None}

        page_size = min(limit, self.config.page_size) if limit else self.config.page_size
        url = continuation_token or self._initial_delta_url(drive_id, page_size)
        wanted = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions or []}

        response = await self._execute_delta_query(url)
        documents = []
        for item in response.get("value") or []:
            if "deleted" in item or "folder" in item:
                continue
            doc = SharePointDocument(item, drive_id, self.site_id)
            if not self._should_include_file(doc):
                continue
            if wanted and file_extension(doc.name) not in wanted:
                continue
            documents.append(self._document_metadata(doc))

        return {
            "documents": documents,
            "continuation_token": response.get("@odata.nextLink"),
        }

    async def _resolve_library_id(self, library: Optional[str]) -> Optional[str]:
        libraries = await self.list_document_libraries()
        if library is None:
            return libraries[0]["id"] if libraries else None
        for lib in libraries:
            if library in (lib["id"], lib["name"]):
                return lib["id"]
        raise DocumentNotFoundError(f"Document library not found: {library}")

    @staticmethod
    def _document_metadata(doc: SharePointDocument) -> Dict[str, Any]:
        return {
            "id": f"{doc.drive_id}:{doc.id}",
            "name": doc.name,
            "path": doc.path,
            **doc.to_document_metadata(),
        }

    @staticmethod
    def _split_document_id(document_id: str) -> Tuple[str, str]:
        drive_id, sep, item_id = document_id.partition(":")
        if not sep or not drive_id or not item_id:
            raise ConnectorError(
                f"Invalid SharePoint document id '{document_id}', expected '<drive_id>:<item_id>'",
                code="INVALID_DOCUMENT_ID",
                status_code=400,
            )
        return drive_id, item_id

    async def get_document_metadata(self, document_id: str) -> Dict[str, Any]:
        await self._ensure_ready()
        drive_id, item_id = self._split_document_id(document_id)

        response = await self.graph.request("GET", f"/drives/{drive_id}/items/{item_id}")
        if response.status_code == 404:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        response.raise_for_status()
        return self._document_metadata(SharePointDocument(response.json(), drive_id, self.site_id))

    async def get_document(self, document_id: str) -> Dict[str, Any]:
        metadata = await self.get_document_metadata(document_id)
        drive_id, item_id = self._split_document_id(document_id)
        content = await self.download_content(drive_id, item_id)
        return {"metadata": metadata, "content": content, "content_type": metadata["mime_type"]}

    async def download_content(self, drive_id: str, item_id: str) -> bytes:
        await self._ensure_ready()

        try:
            content = await self.graph.download(f"/drives/{drive_id}/items/{item_id}/content")
        except Exception as e:
            logger.error(f"Failed to download content for item {item_id} in drive {drive_id}: {e}")
            self.health_service.track_sync_error(self.connector_id, {
                "type": "download_failed",
                "message": str(e),
                "context": {"drive_id": drive_id, "item_id": item_id},
            })
            raise

        logger.debug(f"sharepoint.download.bytes={len(content)} drive={drive_id}")
        return content

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------
    async def get_permissions(self, drive_id: str, item_id: str) -> List[Dict[str, Any]]:
        """Simplified permissions; an empty list when they cannot be read."""
        try:
            permissions = await self.get_raw_permissions(drive_id, item_id)
        except Exception as e:
            logger.warning(f"Failed to get permissions for item {item_id} in drive {drive_id}: {e}")
            return []
        return [simplify_permission(perm) for perm in permissions]

    async def get_raw_permissions(self, drive_id: str, item_id: str) -> List[Dict[str, Any]]:
        await self._ensure_ready()
        data = await self.graph.get_json(f"/drives/{drive_id}/items/{item_id}/permissions")
        return data.get("value") or []

    # ------------------------------------------------------------------
    # Delta state persistence
    # ------------------------------------------------------------------
    def get_delta_state(self, drive_id: str) -> Optional[SharePointDeltaState]:
        return self.delta_states.get(drive_id)

    def set_delta_state(self, drive_id: str, state: Dict[str, Any]) -> None:
        self.delta_states[drive_id] = SharePointDeltaState.from_dict(drive_id, state)

    def get_all_delta_states(self) -> Dict[str, Dict[str, Any]]:
        return {drive_id: state.to_dict() for drive_id, state in self.delta_states.items()}

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status.update({
            "site_id": self.site_id,
            "site_name": self.site_name,
            "site_url": self.config.site_url,
            "site_path": self.config.site_path,
            "library_filter": self.config.library_names,
            "file_types_filter": self.config.file_types,
            "delta_states_count": len(self.delta_states),
        })
        return status


def create_sharepoint_connector(**config: Any) -> SharePointConnector:
    return SharePointConnector(SharePointConnectionConfig(**config))
