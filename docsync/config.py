# ============================================================================
# docsync - Application Configuration
# ============================================================================
"""
Application configuration module using Pydantic Settings.

This module defines all configuration parameters for the docsync service,
including:
- API/CORS settings
- SharePoint Online (Microsoft Graph) connector settings
- Azure Data Lake Storage Gen2 connector settings
- Connector health monitoring thresholds

Environment Variables:
    Every field maps to the upper-cased environment variable of the same
    name (e.g. ``sharepoint_site_url`` -> ``SHAREPOINT_SITE_URL``).
    Comma separated lists (``ADLS_FILE_EXTENSIONS``, ``ADLS_EXCLUDE_PATHS``,
    ``SHAREPOINT_PERMISSION_ROLES_TO_SYNC``) are split with the helpers below.

Usage:
    from docsync.config import settings
    page_size = settings.sharepoint_page_size
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


def split_csv(value: Optional[str], lower: bool = False) -> List[str]:
    """Split a comma separated setting into a list of trimmed, non-empty values."""
    if not value:
        return []
    items = [part.strip() for part in value.split(",") if part.strip()]
    if lower:
        items = [item.lower() for item in items]
    return items


class Settings(BaseSettings):
    # =========================================================================
    # API SETTINGS
    # =========================================================================
    api_title: str = "docsync Connector Service"
    api_version: str = "1.0.0"
    debug: bool = Field(default=False, description="Enable verbose logging")

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed origins for CORS",
    )
    cors_credentials: bool = True
    cors_methods: List[str] = ["*"]
    cors_headers: List[str] = ["*"]

    # =========================================================================
    # MICROSOFT GRAPH
    # =========================================================================
    ms_graph_base_url: str = Field(
        default="https://graph.microsoft.com/v1.0",
        description="Microsoft Graph base URL",
    )
    ms_graph_token_url: Optional[str] = Field(
        default=None,
        description="Token endpoint override (defaults to the tenant's v2.0 endpoint)",
    )
    ms_graph_scope: str = Field(
        default="https://graph.microsoft.com/.default",
        description="Scope requested for app-only Graph tokens",
    )

    # =========================================================================
    # SHAREPOINT CONNECTOR
    # =========================================================================
    sharepoint_tenant_id: Optional[str] = Field(default=None, description="Azure AD tenant ID")
    azure_ad_tenant_id: Optional[str] = Field(default=None, description="Fallback tenant ID")
    sharepoint_client_id: Optional[str] = Field(default=None, description="Application (client) ID")
    sharepoint_client_secret: Optional[str] = Field(default=None, description="Client secret")
    sharepoint_certificate_path: Optional[str] = Field(
        default=None,
        description="PEM certificate for certificate-based auth",
    )
    sharepoint_site_url: Optional[str] = Field(
        default=None,
        description="SharePoint host, e.g. contoso.sharepoint.com",
    )
    sharepoint_site_path: str = Field(default="", description="Site path, e.g. /sites/TeamSite")
    sharepoint_page_size: int = Field(default=200, description="Items per Graph page")
    sharepoint_timeout_ms: int = Field(default=30000, description="Graph request timeout (ms)")
    sharepoint_sync_permissions: bool = Field(
        default=False,
        description="Fetch item permissions during sync and derive allowed_groups",
    )
    sharepoint_include_inherited_permissions: bool = Field(
        default=True,
        description="Include permissions inherited from parent items",
    )
    sharepoint_permission_roles_to_sync: Optional[str] = Field(
        default=None,
        description="Comma separated roles mapped to allowed_groups (empty = all)",
    )
    sharepoint_max_retries: int = Field(default=3, description="Retries for transient Graph errors")
    sharepoint_retry_delay_seconds: int = Field(default=30, description="Delay between retries")

    # =========================================================================
    # ADLS GEN2 CONNECTOR
    # =========================================================================
    adls_account_name: Optional[str] = Field(default=None, description="Storage account name")
    adls_file_system_name: Optional[str] = Field(default=None, description="File system name")
    adls_container_name: Optional[str] = Field(default=None, description="Fallback file system name")
    adls_authentication_type: str = Field(
        default="default_credential",
        description="default_credential | storage_key | sas_token | connection_string",
    )
    adls_storage_key: Optional[str] = Field(default=None, description="Storage account key")
    adls_sas_token: Optional[str] = Field(default=None, description="Shared access signature")
    adls_connection_string: Optional[str] = Field(default=None, description="Connection string")
    adls_batch_size: int = Field(default=50, description="Documents returned per listing call")
    adls_include_subdirectories: bool = Field(default=True, description="Recursive listing")
    adls_file_extensions: Optional[str] = Field(
        default=None,
        description="Comma separated extensions to include (empty = all)",
    )
    adls_base_path: str = Field(default="", description="Root path to sync from")
    adls_exclude_paths: Optional[str] = Field(
        default=None,
        description="Comma separated path prefixes or * wildcards to skip",
    )
    adls_max_file_size_bytes: int = Field(default=50 * 1024 * 1024, description="Max file size")
    adls_download_timeout_ms: int = Field(default=60000, description="Download timeout (ms)")
    adls_health_check_timeout_ms: int = Field(default=10000, description="Health check timeout (ms)")
    adls_sync_acls: bool = Field(default=False, description="Fetch ACLs while listing")
    adls_include_default_acls: bool = Field(
        default=True,
        description="Map default ACL entries to allowed_groups",
    )
    adls_acl_read_permission_required: bool = Field(
        default=True,
        description="Only map ACL entries that grant read",
    )
    adls_resolve_object_ids: bool = Field(
        default=False,
        description="Resolve Azure AD object IDs to display names",
    )
    adls_acl_concurrency: int = Field(default=5, description="Concurrent ACL requests per batch")

    # =========================================================================
    # CONNECTOR HEALTH
    # =========================================================================
    connector_error_window_ms: int = Field(default=3600000, description="Error window (ms)")
    connector_max_error_history: int = Field(default=100, description="Errors kept per connector")
    connector_health_check_interval_ms: int = Field(default=60000, description="Health check interval (ms)")
    connector_unhealthy_threshold: int = Field(default=5, description="Errors in window -> unhealthy")
    connector_degraded_threshold: int = Field(default=2, description="Errors in window -> degraded")
    connector_sync_timeout_ms: int = Field(default=300000, description="Health check timeout (ms)")
    connector_history_size: int = Field(default=50, description="Sync history entries kept")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    # -------- Derived helpers --------
    @property
    def sharepoint_effective_tenant_id(self) -> Optional[str]:
        return self.sharepoint_tenant_id or self.azure_ad_tenant_id

    @property
    def adls_effective_file_system_name(self) -> Optional[str]:
        return self.adls_file_system_name or self.adls_container_name

    @property
    def sharepoint_roles_list(self) -> List[str]:
        return split_csv(self.sharepoint_permission_roles_to_sync)

    @property
    def adls_file_extensions_list(self) -> Optional[List[str]]:
        extensions = split_csv(self.adls_file_extensions, lower=True)
        return extensions or None

    @property
    def adls_exclude_paths_list(self) -> List[str]:
        return split_csv(self.adls_exclude_paths)

    @property
    def sharepoint_configured(self) -> bool:
        return bool(self.sharepoint_site_url and self.sharepoint_client_id)

    @property
    def adls_configured(self) -> bool:
        return bool(self.adls_account_name and self.adls_effective_file_system_name)


# Global settings instance (imported elsewhere)
settings = Settings()
