"""
Azure Data Lake Storage Gen2 connector.

Lists and downloads files from an ADLS Gen2 file system and maps POSIX ACLs
to ``allowed_groups`` for security trimming.

Authentication methods (``ADLS_AUTHENTICATION_TYPE``):
- default_credential: ``DefaultAzureCredential`` (managed identity, CLI, env)
- storage_key: storage account key
- sas_token: shared access signature
- connection_string: full storage connection string
"""

import asyncio
import hashlib
import logging
import re
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from azure.core.credentials import AzureNamedKeyCredential, AzureSasCredential
from azure.core.exceptions import ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.storage.filedatalake.aio import DataLakeServiceClient, FileSystemClient

from ...config import settings
from ..base import BaseConnector, ConnectionStatus
from ..errors import ConnectorConfigError, ConnectorError, DocumentNotFoundError
from .acl import AccessControl, acl_to_allowed_groups, parse_acl_string

logger = logging.getLogger("docsync.adls")

CONNECTOR_TYPE = "adls"
DEFAULT_CONNECTOR_ID = "default-adls"

MIME_TYPES: Dict[str, str] = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "txt": "text/plain",
    "csv": "text/csv",
    "json": "application/json",
    "xml": "application/xml",
    "html": "text/html",
    "md": "text/markdown",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "zip": "application/zip",
}


class AuthenticationType(str, Enum):
    DEFAULT_CREDENTIAL = "default_credential"
    STORAGE_KEY = "storage_key"
    SAS_TOKEN = "sas_token"
    CONNECTION_STRING = "connection_string"


def _normalize_extensions(extensions: Optional[List[str]]) -> Optional[List[str]]:
    if not extensions:
        return None
    return [ext.strip().lower().lstrip(".") for ext in extensions if ext and ext.strip()]


def _iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def _status_code(error: BaseException) -> Optional[int]:
    if isinstance(error, ResourceNotFoundError):
        return 404
    return getattr(error, "status_code", None)


def get_file_name(path: str) -> str:
    return path.split("/")[-1]


def get_file_extension(path: str) -> str:
    """Lower-cased extension without the dot."""
    name = get_file_name(path)
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def get_mime_type(path: str) -> str:
    return MIME_TYPES.get(get_file_extension(path), "application/octet-stream")


class ADLSGen2Config:
    """
    ADLS Gen2 connector configuration.

    Values not passed explicitly come from the ``ADLS_*`` settings.
    """

    def __init__(
        self,
        account_name: Optional[str] = None,
        file_system_name: Optional[str] = None,
        authentication_type: Optional[str] = None,
        storage_key: Optional[str] = None,
        sas_token: Optional[str] = None,
        connection_string: Optional[str] = None,
        batch_size: Optional[int] = None,
        include_subdirectories: Optional[bool] = None,
        file_extensions: Optional[List[str]] = None,
        base_path: Optional[str] = None,
        exclude_paths: Optional[List[str]] = None,
        max_file_size_bytes: Optional[int] = None,
        download_timeout_ms: Optional[int] = None,
        health_check_timeout_ms: Optional[int] = None,
        sync_acls: Optional[bool] = None,
        include_default_acls: Optional[bool] = None,
        acl_read_permission_required: Optional[bool] = None,
        resolve_object_ids: Optional[bool] = None,
        acl_concurrency: Optional[int] = None,
    ):
        def pick(value, default):
            return default if value is None else value

        self.account_name = pick(account_name, settings.adls_account_name)
        self.file_system_name = pick(file_system_name, settings.adls_effective_file_system_name)
        self.authentication_type = AuthenticationType(
            pick(authentication_type, settings.adls_authentication_type)
        )
        self.storage_key = pick(storage_key, settings.adls_storage_key)
        self.sas_token = pick(sas_token, settings.adls_sas_token)
        self.connection_string = pick(connection_string, settings.adls_connection_string)

        self.batch_size = pick(batch_size, settings.adls_batch_size)
        self.include_subdirectories = pick(include_subdirectories, settings.adls_include_subdirectories)
        self.file_extensions = _normalize_extensions(pick(file_extensions, settings.adls_file_extensions_list))
        self.base_path = pick(base_path, settings.adls_base_path)
        self.exclude_paths = list(pick(exclude_paths, settings.adls_exclude_paths_list))

        self.max_file_size_bytes = pick(max_file_size_bytes, settings.adls_max_file_size_bytes)
        self.download_timeout_ms = pick(download_timeout_ms, settings.adls_download_timeout_ms)
        self.health_check_timeout_ms = pick(health_check_timeout_ms, settings.adls_health_check_timeout_ms)

        self.sync_acls = pick(sync_acls, settings.adls_sync_acls)
        self.include_default_acls = pick(include_default_acls, settings.adls_include_default_acls)
        self.acl_read_permission_required = pick(
            acl_read_permission_required, settings.adls_acl_read_permission_required
        )
        self.resolve_object_ids = pick(resolve_object_ids, settings.adls_resolve_object_ids)
        self.acl_concurrency = pick(acl_concurrency, settings.adls_acl_concurrency)

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.dfs.core.windows.net"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form without secrets."""
        return {
            "account_name": self.account_name,
            "file_system_name": self.file_system_name,
            "authentication_type": self.authentication_type.value,
            "batch_size": self.batch_size,
            "include_subdirectories": self.include_subdirectories,
            "file_extensions": self.file_extensions,
            "base_path": self.base_path,
            "exclude_paths": self.exclude_paths,
            "max_file_size_bytes": self.max_file_size_bytes,
            "sync_acls": self.sync_acls,
            "include_default_acls": self.include_default_acls,
            "acl_read_permission_required": self.acl_read_permission_required,
        }


class ADLSGen2Connector(BaseConnector):
    """Connector for one ADLS Gen2 file system."""

    def __init__(
        self,
        connector_id: str = DEFAULT_CONNECTOR_ID,
        config: Optional[ADLSGen2Config] = None,
        **options: Any,
    ):
        if config is None:
            config = ADLSGen2Config(**options)
        super().__init__(connector_id, CONNECTOR_TYPE, config)

        self.service_client: Optional[DataLakeServiceClient] = None
        self.file_system_client: Optional[FileSystemClient] = None
        self.credential: Any = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def initialize(self) -> None:
        if self.is_initialized:
            logger.warning(f"Connector {self.connector_id} is already initialized")
            return

        self._set_connection_status(ConnectionStatus.CONNECTING)

        try:
            self._validate_config(["account_name", "file_system_name"])
            self.credential = self._create_credential()
            self.service_client = self._create_service_client(self.credential)
            self.file_system_client = self.service_client.get_file_system_client(self.config.file_system_name)

            health = await self.perform_health_check()
            if not health["healthy"]:
                raise ConnectorError(f"Health check failed: {health['message']}", code="HEALTH_CHECK_FAILED")

            self.is_initialized = True
            self.initialization_time = datetime.now(timezone.utc).isoformat()
            self._set_connection_status(ConnectionStatus.CONNECTED)
            logger.info(
                f"ADLS Gen2 connector {self.connector_id} initialized "
                f"(account={self.config.account_name}, file_system={self.config.file_system_name}, "
                f"base_path={self.config.base_path or '/'})"
            )
        except Exception as e:
            self._set_connection_status(ConnectionStatus.ERROR, str(e))
            self._record_error(e)
            await self._close_clients()
            raise

    def _create_credential(self) -> Any:
        auth = self.config.authentication_type

        if auth == AuthenticationType.STORAGE_KEY:
            if not self.config.storage_key:
                raise ConnectorConfigError("Storage key is required for storage_key authentication")
            return AzureNamedKeyCredential(self.config.account_name, self.config.storage_key)

        if auth == AuthenticationType.SAS_TOKEN:
            if not self.config.sas_token:
                raise ConnectorConfigError("SAS token is required for sas_token authentication")
            return AzureSasCredential(self.config.sas_token.lstrip("?"))

        if auth == AuthenticationType.CONNECTION_STRING:
            if not self.config.connection_string:
                raise ConnectorConfigError("Connection string is required for connection_string authentication")
            return None

        return DefaultAzureCredential()

    def _create_service_client(self, credential: Any) -> DataLakeServiceClient:
        if self.config.authentication_type == AuthenticationType.CONNECTION_STRING:
            return DataLakeServiceClient.from_connection_string(self.config.connection_string)
        return DataLakeServiceClient(account_url=self.config.account_url, credential=credential)

    async def _close_clients(self) -> None:
        if self.service_client is not None:
            await self.service_client.close()
        if isinstance(self.credential, DefaultAzureCredential):
            await self.credential.close()
        self.service_client = None
        self.file_system_client = None
        self.credential = None

    async def disconnect(self) -> None:
        await self._close_clients()
        await super().disconnect()

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------
    async def perform_health_check(self) -> Dict[str, Any]:
        """Check the file system exists and at least one path can be listed."""
        started = time.monotonic()
        details: Dict[str, Any] = {
            "account_name": self.config.account_name,
            "file_system_name": self.config.file_system_name,
        }
        timeout = self.config.health_check_timeout_ms / 1000

        try:
            if self.file_system_client is None:
                exists = await asyncio.wait_for(self._probe_with_temporary_client(), timeout=timeout)
                details["latency_ms"] = int((time.monotonic() - started) * 1000)
                return {
                    "healthy": exists,
                    "message": "Connected to ADLS Gen2" if exists else "File system not found",
                    "details": details,
                }

            exists = await asyncio.wait_for(self.file_system_client.exists(), timeout=timeout)
            if not exists:
                details["latency_ms"] = int((time.monotonic() - started) * 1000)
                return {
                    "healthy": False,
                    "message": f"File system '{self.config.file_system_name}' not found",
                    "details": details,
                }

            await asyncio.wait_for(self._list_one_path(self.file_system_client), timeout=timeout)

            latency_ms = int((time.monotonic() - started) * 1000)
            logger.debug(f"adls.health_check.latency_ms={latency_ms} connector={self.connector_id}")
            details.update({"latency_ms": latency_ms, "connection_status": self.connection_status.value})
            return {"healthy": True, "message": "ADLS Gen2 connection healthy", "details": details}

        except Exception as e:
            self._record_error(e)
            message = "timed out" if isinstance(e, asyncio.TimeoutError) else str(e)
            details.update({
                "error_code": getattr(e, "error_code", None) or getattr(e, "code", None),
                "latency_ms": int((time.monotonic() - started) * 1000),
            })
            return {"healthy": False, "message": f"Health check failed: {message}", "details": details}

    async def _probe_with_temporary_client(self) -> bool:
        credential = self._create_credential()
        client = self._create_service_client(credential)
        try:
            return await client.get_file_system_client(self.config.file_system_name).exists()
        finally:
            await client.close()
            if isinstance(credential, DefaultAzureCredential):
                await credential.close()

    @staticmethod
    async def _list_one_path(file_system_client: FileSystemClient) -> None:
        async for _ in file_system_client.get_paths(recursive=False, max_results=1):
            break

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------
    async def list_documents(
        self,
        path: Optional[str] = None,
        recursive: Optional[bool] = None,
        extensions: Optional[List[str]] = None,
        limit: Optional[int] = None,
        continuation_token: Optional[str] = None,
        include_acls: Optional[bool] = None,
        **options: Any,
    ) -> Dict[str, Any]:
        """
        List up to ``limit`` files.

        Each service request asks for at most the number of files still
        needed, so a page is always consumed completely and the returned
        ``continuation_token`` resumes exactly after the last listed file.
        The token is only returned when ``limit`` was reached and the
        service reports more paths.
        """
        self._ensure_initialized()

        started = time.monotonic()
        path = path or self.config.base_path or None
        recursive = self.config.include_subdirectories if recursive is None else recursive
        wanted = _normalize_extensions(extensions) or self.config.file_extensions
        limit = limit or self.config.batch_size
        include_acls = self.config.sync_acls if include_acls is None else include_acls

        path_items: List[Any] = []
        token = continuation_token

        try:
            while len(path_items) < limit:
                pages = self.file_system_client.get_paths(
                    path=path,
                    recursive=recursive,
                    max_results=limit - len(path_items),
                ).by_page(continuation_token=token)

                async for page in pages:
                    async for item in page:
                        if self._include_path_item(item, wanted):
                            path_items.append(item)
                    break

                token = pages.continuation_token
                if not token:
                    break
        except Exception as e:
            self._record_error(e)
            raise

        result: Dict[str, Any] = {
            "documents": [],
            "continuation_token": token if len(path_items) >= limit and token else None,
        }

        if include_acls and path_items:
            acl_stats = {"attempted": 0, "succeeded": 0, "failed": 0}
            acl_results = await self.batch_get_access_control([item.name for item in path_items])
            for item in path_items:
                access_control = acl_results.get(item.name)
                acl_stats["attempted"] += 1
                if access_control:
                    acl_stats["succeeded"] += 1
                    allowed_groups = self._acl_to_allowed_groups(access_control)
                else:
                    acl_stats["failed"] += 1
                    allowed_groups = None
                result["documents"].append(self._path_item_to_metadata(item, access_control, allowed_groups))
            result["acl_stats"] = acl_stats
        else:
            result["documents"] = [self._path_item_to_metadata(item) for item in path_items]
            if include_acls:
                result["acl_stats"] = {"attempted": 0, "succeeded": 0, "failed": 0}

        latency_ms = int((time.monotonic() - started) * 1000)
        logger.debug(
            f"Listed {len(path_items)} documents from ADLS Gen2 "
            f"(connector={self.connector_id}, path={path or '/'}, latency_ms={latency_ms})"
        )
        return result

    def _include_path_item(self, item: Any, extensions: Optional[List[str]]) -> bool:
        if item.is_directory:
            return False
        if self._is_path_excluded(item.name):
            return False
        if extensions and get_file_extension(item.name) not in extensions:
            return False
        if (item.content_length or 0) > self.config.max_file_size_bytes:
            logger.debug(f"Skipping file {item.name}: exceeds max size ({item.content_length} bytes)")
            return False
        return True

    def _is_path_excluded(self, path: str) -> bool:
        for pattern in self.config.exclude_paths:
            if "*" in pattern:
                regex = "^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$"
                if re.match(regex, path):
                    return True
            elif path.startswith(pattern):
                return True
        return False

    def _path_item_to_metadata(
        self,
        item: Any,
        access_control: Optional[AccessControl] = None,
        allowed_groups: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "id": item.name,
            "source_id": item.name,
            "name": get_file_name(item.name),
            "path": item.name,
            "mime_type": get_mime_type(item.name),
            "size": item.content_length,
            "created_at": _iso(getattr(item, "creation_time", None) or item.last_modified),
            "modified_at": _iso(item.last_modified),
            "etag": item.etag,
            "version": item.etag,
            "custom": {
                "owner": item.owner,
                "group": item.group,
                "permissions": item.permissions,
            },
        }
        if access_control:
            metadata["access_control"] = access_control
            metadata["acls_synced"] = True
        if allowed_groups is not None:
            metadata["allowed_groups"] = allowed_groups
        return metadata

    async def list_directories(self, path: str = "") -> List[Dict[str, Any]]:
        self._ensure_initialized()
        base_path = path or self.config.base_path or None

        directories = []
        try:
            async for item in self.file_system_client.get_paths(path=base_path, recursive=False):
                if item.is_directory:
                    directories.append({
                        "name": get_file_name(item.name),
                        "path": item.name,
                        "last_modified": _iso(item.last_modified),
                    })
        except Exception as e:
            self._record_error(e)
            raise
        return directories

    async def get_file_system_properties(self) -> Dict[str, Any]:
        self._ensure_initialized()
        try:
            properties = await self.file_system_client.get_file_system_properties()
        except Exception as e:
            self._record_error(e)
            raise

        lease = getattr(properties, "lease", None)
        return {
            "name": self.config.file_system_name,
            "last_modified": _iso(properties.last_modified),
            "etag": properties.etag,
            "lease_status": getattr(lease, "status", None),
            "lease_state": getattr(lease, "state", None),
            "has_immutability_policy": getattr(properties, "has_immutability_policy", None),
            "has_legal_hold": getattr(properties, "has_legal_hold", None),
            "metadata": properties.metadata,
        }

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------
    async def get_document(self, document_id: str) -> Dict[str, Any]:
        self._ensure_initialized()
        started = time.monotonic()

        try:
            file_client = self.file_system_client.get_file_client(document_id)
            properties = await file_client.get_file_properties()
            content = await asyncio.wait_for(
                self._download(file_client),
                timeout=self.config.download_timeout_ms / 1000,
            )
        except Exception as e:
            self._record_error(e)
            if _status_code(e) == 404:
                raise DocumentNotFoundError(f"Document not found: {document_id}") from e
            raise

        metadata = self._properties_to_metadata(document_id, properties)
        metadata["content_hash"] = hashlib.md5(content).hexdigest()
        metadata["custom"]["encryption_scope"] = getattr(properties, "encryption_scope", None)

        logger.debug(
            f"Downloaded {len(content)} bytes from ADLS Gen2 path {document_id} "
            f"in {int((time.monotonic() - started) * 1000)}ms"
        )
        return {"metadata": metadata, "content": content, "content_type": metadata["mime_type"]}

    @staticmethod
    async def _download(file_client: Any) -> bytes:
        downloader = await file_client.download_file()
        return await downloader.readall()

    async def get_document_metadata(self, document_id: str) -> Dict[str, Any]:
        self._ensure_initialized()
        try:
            properties = await self.file_system_client.get_file_client(document_id).get_file_properties()
        except Exception as e:
            self._record_error(e)
            if _status_code(e) == 404:
                raise DocumentNotFoundError(f"Document not found: {document_id}") from e
            raise
        return self._properties_to_metadata(document_id, properties)

    @staticmethod
    def _properties_to_metadata(path: str, properties: Any) -> Dict[str, Any]:
        content_settings = getattr(properties, "content_settings", None)
        content_type = getattr(content_settings, "content_type", None) or get_mime_type(path)
        lease = getattr(properties, "lease", None)
        return {
            "id": path,
            "source_id": path,
            "name": get_file_name(path),
            "path": path,
            "mime_type": content_type,
            "size": properties.size,
            "created_at": _iso(properties.creation_time),
            "modified_at": _iso(properties.last_modified),
            "etag": properties.etag,
            "version": properties.etag,
            "custom": {
                "lease_status": getattr(lease, "status", None),
                "metadata": properties.metadata,
            },
        }

    # ------------------------------------------------------------------
    # ACLs
    # ------------------------------------------------------------------
    async def get_file_access_control(self, path: str) -> Optional[AccessControl]:
        """Parsed ACL for a file; None when the caller may not read it (403)."""
        self._ensure_initialized()
        return await self._get_access_control(self.file_system_client.get_file_client(path), path, "File")

    async def get_directory_access_control(self, path: str, include_default: bool = True) -> Optional[AccessControl]:
        self._ensure_initialized()
        access_control = await self._get_access_control(
            self.file_system_client.get_directory_client(path), path, "Directory"
        )
        if access_control and not include_default:
            access_control["acl"] = [entry for entry in access_control["acl"] if not entry["is_default"]]
        return access_control

    async def _get_access_control(self, client: Any, path: str, kind: str) -> Optional[AccessControl]:
        started = time.monotonic()
        try:
            raw = await client.get_access_control()
        except Exception as e:
            self._record_error(e)
            status = _status_code(e)
            if status == 404:
                raise DocumentNotFoundError(f"{kind} not found: {path}") from e
            if status == 403:
                logger.warning(f"Insufficient permissions to read ACL for {kind.lower()} {path}")
                return None
            raise

        access_control = {
            "owner": raw.get("owner"),
            "group": raw.get("group"),
            "permissions": raw.get("permissions"),
            "acl": parse_acl_string(raw.get("acl")),
            "raw_acl": raw.get("acl"),
        }
        logger.debug(
            f"Retrieved ACL for {path}: {len(access_control['acl'])} entries "
            f"in {int((time.monotonic() - started) * 1000)}ms"
        )
        return access_control

    async def get_document_with_acls(self, path: str, include_acls: Optional[bool] = None) -> Dict[str, Any]:
        should_sync = self.config.sync_acls if include_acls is None else include_acls
        document = await self.get_document(path)
        if not should_sync:
            return document

        metadata = document["metadata"]
        try:
            access_control = await self.get_file_access_control(path)
        except Exception as e:
            logger.warning(f"Failed to sync ACLs for document {path}: {e}")
            metadata["acls_synced"] = False
            metadata["acl_sync_error"] = str(e)
            return document

        if access_control:
            metadata["access_control"] = access_control
            metadata["allowed_groups"] = self._acl_to_allowed_groups(access_control)
            metadata["acls_synced"] = True
        else:
            metadata["acls_synced"] = False
            metadata["acl_sync_error"] = "Insufficient permissions"
        return document

    async def batch_get_access_control(
        self, paths: List[str], concurrency: Optional[int] = None
    ) -> Dict[str, Optional[AccessControl]]:
        """
        Fetch ACLs in batches of ``concurrency`` concurrent requests.

        Paths whose request raised are left out of the result; a 403 maps to
        None like ``get_file_access_control``.
        """
        self._ensure_initialized()
        concurrency = max(1, concurrency or self.config.acl_concurrency or 5)

        results: Dict[str, Optional[AccessControl]] = {}
        errors: List[Tuple[str, str]] = []

        for start in range(0, len(paths), concurrency):
            batch = paths[start:start + concurrency]
            outcomes = await asyncio.gather(
                *(self.get_file_access_control(p) for p in batch),
                return_exceptions=True,
            )
            for batch_path, outcome in zip(batch, outcomes):
                if isinstance(outcome, Exception):
                    errors.append((batch_path, str(outcome)))
                else:
                    results[batch_path] = outcome

        if errors:
            logger.warning(
                f"Batch ACL retrieval completed with {len(errors)} errors "
                f"(connector={self.connector_id}, total={len(paths)}, succeeded={len(results)})"
            )
        return results

    def _acl_to_allowed_groups(self, access_control: Optional[AccessControl]) -> List[str]:
        return acl_to_allowed_groups(
            access_control,
            read_permission_required=self.config.acl_read_permission_required,
            include_default=self.config.include_default_acls,
        )

    @staticmethod
    def get_acl_sync_stats(documents: List[Dict[str, Any]]) -> Dict[str, Any]:
        owners, groups, allowed = set(), set(), set()
        stats = {
            "total_documents": len(documents),
            "documents_with_acls": 0,
            "documents_without_acls": 0,
            "acl_errors": 0,
            "public_documents": 0,
        }

        for doc in documents:
            access_control = doc.get("access_control")
            if access_control:
                stats["documents_with_acls"] += 1
                if access_control.get("owner"):
                    owners.add(access_control["owner"])
                if access_control.get("group"):
                    groups.add(access_control["group"])
                doc_groups = doc.get("allowed_groups") or []
                allowed.update(doc_groups)
                if "public" in doc_groups:
                    stats["public_documents"] += 1
            elif doc.get("acl_sync_error"):
                stats["acl_errors"] += 1
            else:
                stats["documents_without_acls"] += 1

        stats.update({
            "unique_owners": len(owners),
            "unique_groups": len(groups),
            "unique_allowed_groups": len(allowed),
        })
        return stats

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status.update({
            "account_name": self.config.account_name,
            "file_system_name": self.config.file_system_name,
            "base_path": self.config.base_path,
            "sync_acls": self.config.sync_acls,
        })
        return status


_default_connector: Optional[ADLSGen2Connector] = None


def get_adls_gen2_connector(**options: Any) -> ADLSGen2Connector:
    """Shared connector built from settings on first use."""
    global _default_connector
    if _default_connector is None:
        _default_connector = ADLSGen2Connector(DEFAULT_CONNECTOR_ID, **options)
    return _default_connector


def create_adls_gen2_connector(connector_id: str, **options: Any) -> ADLSGen2Connector:
    return ADLSGen2Connector(connector_id, **options)


def reset_default_connector() -> None:
    global _default_connector
    _default_connector = None
