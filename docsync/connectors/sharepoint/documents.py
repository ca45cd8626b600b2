"""
SharePoint configuration, document and delta-state models.

``SharePointDocument`` wraps a Graph driveItem and derives ``allowed_groups``
from the item's permissions for downstream security trimming.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ...config import settings
from ..errors import ConnectorConfigError

CONNECTOR_TYPE = "sharepoint"
GRAPH_API_VERSION = "v1.0"
DEFAULT_PAGE_SIZE = 200
DEFAULT_TIMEOUT_MS = 30000

SUPPORTED_FILE_TYPES: Dict[str, str] = {
    # Documents
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    # Text
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".md": "text/markdown",
    ".json": "application/json",
    ".xml": "application/xml",
    # Rich text
    ".rtf": "application/rtf",
    ".html": "text/html",
    ".htm": "text/html",
}


def file_extension(name: Optional[str]) -> str:
    """Lower-cased extension including the dot ('' when the name has none)."""
    if not name or "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1].lower()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def simplify_permission(perm: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a raw Graph permission into the shape exposed by the API."""
    granted_to = (perm.get("grantedTo") or {}).get("user") or {}
    granted_to_v2 = (perm.get("grantedToV2") or {}).get("user") or {}
    link = perm.get("link")
    return {
        "id": perm.get("id"),
        "type": ",".join(perm.get("roles") or []) or "unknown",
        "granted_to": granted_to.get("displayName") or granted_to_v2.get("displayName"),
        "granted_to_email": granted_to.get("email") or granted_to_v2.get("email"),
        "share_id": perm.get("shareId"),
        "inherited_from": (perm.get("inheritedFrom") or {}).get("path"),
        "link": {"type": link.get("type"), "scope": link.get("scope")} if link else None,
    }


class SharePointConnectionConfig:
    """
    Connection settings for a SharePoint site.

    Explicit keyword values win; anything left unset falls back to the
    ``SHAREPOINT_*`` settings. Validation collects every problem before
    raising ``ConnectorConfigError``.
    """

    def __init__(
        self,
        tenant_id: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        certificate_path: Optional[str] = None,
        site_url: Optional[str] = None,
        site_path: Optional[str] = None,
        library_names: Optional[List[str]] = None,
        included_folders: Optional[List[str]] = None,
        excluded_folders: Optional[List[str]] = None,
        file_types: Optional[List[str]] = None,
        page_size: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        sync_permissions: Optional[bool] = None,
        include_inherited_permissions: Optional[bool] = None,
        permission_roles_to_sync: Optional[List[str]] = None,
    ):
        # Authentication
        self.tenant_id = tenant_id or settings.sharepoint_effective_tenant_id
        self.client_id = client_id or settings.sharepoint_client_id
        self.client_secret = client_secret or settings.sharepoint_client_secret
        self.certificate_path = certificate_path or settings.sharepoint_certificate_path

        # Site
        self.site_url = site_url or settings.sharepoint_site_url
        self.site_path = site_path if site_path is not None else settings.sharepoint_site_path

        # Filtering
        self.library_names = list(library_names or [])
        self.included_folders = list(included_folders or [])
        self.excluded_folders = list(excluded_folders or [])
        self.file_types = [t.lower() for t in file_types] if file_types else list(SUPPORTED_FILE_TYPES)

        # Performance
        self.page_size = page_size or settings.sharepoint_page_size or DEFAULT_PAGE_SIZE
        self.timeout_ms = timeout_ms or settings.sharepoint_timeout_ms or DEFAULT_TIMEOUT_MS

        # Permissions
        self.sync_permissions = (
            settings.sharepoint_sync_permissions if sync_permissions is None else sync_permissions
        )
        self.include_inherited_permissions = (
            settings.sharepoint_include_inherited_permissions
            if include_inherited_permissions is None
            else include_inherited_permissions
        )
        self.permission_roles_to_sync = (
            list(permission_roles_to_sync)
            if permission_roles_to_sync is not None
            else settings.sharepoint_roles_list
        )

        self.validate()

    def validate(self) -> None:
        errors = []
        if not self.tenant_id:
            errors.append("tenant_id is required (set SHAREPOINT_TENANT_ID or AZURE_AD_TENANT_ID)")
        if not self.client_id:
            errors.append("client_id is required (set SHAREPOINT_CLIENT_ID)")
        if not self.client_secret and not self.certificate_path:
            errors.append("client_secret or certificate_path is required")
        if not self.site_url:
            errors.append("site_url is required (set SHAREPOINT_SITE_URL)")

        if errors:
            raise ConnectorConfigError(f"SharePoint connector configuration errors: {'; '.join(errors)}")

    def get_site_identifier(self) -> str:
        """Graph site identifier: ``hostname`` or ``hostname:/sites/Path``."""
        host = self.site_url
        for scheme in ("https://", "http://"):
            if host.startswith(scheme):
                host = host[len(scheme):]
                break
        if self.site_path:
            return f"{host}:{self.site_path}"
        return host

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "client_id": self.client_id,
            "site_url": self.site_url,
            "site_path": self.site_path,
            "library_names": self.library_names,
            "included_folders": self.included_folders,
            "excluded_folders": self.excluded_folders,
            "file_types": self.file_types,
            "page_size": self.page_size,
            "timeout_ms": self.timeout_ms,
            "sync_permissions": self.sync_permissions,
            "include_inherited_permissions": self.include_inherited_permissions,
            "permission_roles_to_sync": self.permission_roles_to_sync,
        }


class SharePointDocument:
    """A file in a SharePoint document library."""

    def __init__(self, drive_item: Dict[str, Any], drive_id: str, site_id: Optional[str]):
        list_item = drive_item.get("listItem") or {}

        self.id = drive_item.get("id")
        self.drive_id = drive_id
        self.site_id = site_id
        self.name = drive_item.get("name") or ""
        self.path = (drive_item.get("parentReference") or {}).get("path") or ""
        self.web_url = drive_item.get("webUrl")
        self.size = drive_item.get("size") or 0
        self.mime_type = (drive_item.get("file") or {}).get("mimeType") or self._infer_mime_type(self.name)
        self.created_date_time = drive_item.get("createdDateTime")
        self.last_modified_date_time = drive_item.get("lastModifiedDateTime")
        self.created_by = ((drive_item.get("createdBy") or {}).get("user") or {}).get("displayName") or "Unknown"
        self.last_modified_by = (
            ((drive_item.get("lastModifiedBy") or {}).get("user") or {}).get("displayName") or "Unknown"
        )
        self.etag = drive_item.get("eTag")
        self.ctag = drive_item.get("cTag")

        self.list_item_id = list_item.get("id")
        self.content_type = (list_item.get("contentType") or {}).get("name")
        self.fields = list_item.get("fields") or {}

        self.permissions: List[Dict[str, Any]] = []
        self.shared_with: List[str] = []
        self.allowed_groups: List[str] = []

    def set_permissions(
        self,
        permissions: List[Dict[str, Any]],
        include_inherited: bool = True,
        roles_to_include: Iterable[str] = (),
    ) -> None:
        """
        Store raw Graph permissions and derive ``allowed_groups``.

        Groups and SharePoint site groups contribute their display name (or
        id), users contribute ``user:<email or UPN>``, and sharing links add
        ``organization`` or ``anonymous`` depending on their scope.
        """
        roles = {r.strip().lower() for r in roles_to_include if r and r.strip()}
        self.permissions = permissions

        found: Dict[str, None] = {}
        for perm in permissions:
            if not include_inherited and perm.get("inheritedFrom"):
                continue
            if roles and not any((role or "").lower() in roles for role in perm.get("roles") or []):
                continue
            for identifier in self._identifiers_from_permission(perm):
                if identifier and identifier.strip():
                    found.setdefault(identifier, None)

        self.allowed_groups = list(found)

        shared: List[str] = []
        for perm in permissions:
            simplified = simplify_permission(perm)
            label = simplified["granted_to"] or simplified["granted_to_email"]
            if label:
                shared.append(label)
        self.shared_with = shared

    @staticmethod
    def _identifiers_from_permission(perm: Dict[str, Any]) -> List[str]:
        identifiers: List[str] = []

        def add_identity(identity: Dict[str, Any]) -> None:
            for key in ("group", "siteGroup"):
                principal = identity.get(key)
                if principal:
                    identifiers.append(principal.get("displayName") or principal.get("id") or "")
            user = identity.get("user")
            if user:
                email = user.get("email") or user.get("userPrincipalName")
                if email:
                    identifiers.append(f"user:{email}")

        for identity in (perm.get("grantedToIdentitiesV2") or []) + (perm.get("grantedToIdentities") or []):
            add_identity(identity)

        granted_to = perm.get("grantedTo") or {}
        user = granted_to.get("user")
        if user:
            email = user.get("email") or user.get("userPrincipalName")
            if email:
                identifiers.append(f"user:{email}")

        if perm.get("grantedToV2"):
            add_identity(perm["grantedToV2"])

        scope = (perm.get("link") or {}).get("scope")
        if scope == "organization":
            identifiers.append("organization")
        elif scope == "anonymous":
            identifiers.append("anonymous")

        return identifiers

    def get_unique_id(self) -> str:
        return f"sharepoint:{self.site_id}:{self.drive_id}:{self.id}"

    def get_download_path(self) -> str:
        return f"/drives/{self.drive_id}/items/{self.id}/content"

    @staticmethod
    def _infer_mime_type(name: str) -> str:
        return SUPPORTED_FILE_TYPES.get(file_extension(name), "application/octet-stream")

    def is_supported(self) -> bool:
        return file_extension(self.name) in SUPPORTED_FILE_TYPES

    def to_document_metadata(self) -> Dict[str, Any]:
        return {
            "source_id": self.get_unique_id(),
            "source_type": CONNECTOR_TYPE,
            "source_name": self.name,
            "source_url": self.web_url,
            "source_path": self.path,
            "mime_type": self.mime_type,
            "size": self.size,
            "created_at": self.created_date_time,
            "modified_at": self.last_modified_date_time,
            "created_by": self.created_by,
            "modified_by": self.last_modified_by,
            "etag": self.etag,
            "allowed_groups": self.allowed_groups,
            "metadata": {
                "drive_id": self.drive_id,
                "site_id": self.site_id,
                "item_id": self.id,
                "list_item_id": self.list_item_id,
                "content_type": self.content_type,
                "fields": self.fields,
                "permissions": self.permissions,
                "shared_with": self.shared_with,
            },
        }


class SharePointDeltaState:
    """Delta link and counters for one document library (drive)."""

    def __init__(self, drive_id: str, delta_link: Optional[str] = None):
        self.drive_id = drive_id
        self.delta_link = delta_link
        self.last_sync_time: Optional[str] = _utc_now_iso() if delta_link else None
        self.synced_item_count = 0
        self.deleted_item_count = 0

    def update(self, new_delta_link: str, synced: int = 0, deleted: int = 0) -> None:
        self.delta_link = new_delta_link
        self.last_sync_time = _utc_now_iso()
        self.synced_item_count += synced
        self.deleted_item_count += deleted

    def is_fresh_sync(self) -> bool:
        return not self.delta_link

    def is_new_item(self, created_date_time: Optional[str]) -> bool:
        """True for a fresh sync or an item created after the last sync."""
        if self.is_fresh_sync():
            return True
        created = _parse_timestamp(created_date_time)
        last_sync = _parse_timestamp(self.last_sync_time)
        if created is None:
            return False
        if last_sync is None:
            return True
        return created > last_sync

    def to_dict(self) -> Dict[str, Any]:
        return {
            "drive_id": self.drive_id,
            "delta_link": self.delta_link,
            "last_sync_time": self.last_sync_time,
            "synced_item_count": self.synced_item_count,
            "deleted_item_count": self.deleted_item_count,
        }

    @classmethod
    def from_dict(cls, drive_id: str, state: Dict[str, Any]) -> "SharePointDeltaState":
        delta_state = cls(drive_id, state.get("delta_link"))
        delta_state.last_sync_time = state.get("last_sync_time")
        delta_state.synced_item_count = state.get("synced_item_count") or 0
        delta_state.deleted_item_count = state.get("deleted_item_count") or 0
        return delta_state
