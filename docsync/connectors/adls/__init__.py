from .acl import (
    AccessControl,
    AclEntry,
    AclEntryType,
    AclPermission,
    acl_to_allowed_groups,
    parse_acl_entry,
    parse_acl_string,
)
from .connector import (
    ADLSGen2Config,
    ADLSGen2Connector,
    AuthenticationType,
    create_adls_gen2_connector,
    get_adls_gen2_connector,
    reset_default_connector,
)

__all__ = [
    "ADLSGen2Config",
    "ADLSGen2Connector",
    "AccessControl",
    "AclEntry",
    "AclEntryType",
    "AclPermission",
    "AuthenticationType",
    "acl_to_allowed_groups",
    "create_adls_gen2_connector",
    "get_adls_gen2_connector",
    "parse_acl_entry",
    "parse_acl_string",
    "reset_default_connector",
]
