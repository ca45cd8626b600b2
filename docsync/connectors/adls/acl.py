"""
POSIX ACL parsing for ADLS Gen2 and mapping to ``allowed_groups``.

ADLS Gen2 returns ACLs as a comma separated list of entries:

    user::rwx,user:<oid>:r-x,group::r-x,group:<oid>:r--,mask::r-x,other::---
    default:user:<oid>:r-x

An empty object id denotes the owning user / owning group of the path.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger("docsync.adls.acl")


class AclPermission(str, Enum):
    READ = "r"
    WRITE = "w"
    EXECUTE = "x"


class AclEntryType(str, Enum):
    USER = "user"
    GROUP = "group"
    MASK = "mask"
    OTHER = "other"


AclEntry = Dict[str, Any]
AccessControl = Dict[str, Any]

_ENTRY_TYPES = {t.value for t in AclEntryType}


def parse_acl_entry(entry: Optional[str]) -> Optional[AclEntry]:
    """
    Parse ``[default:]type:objectId:permissions``.

    Returns None for malformed entries and unknown entry types.
    """
    if not entry:
        return None

    parts = entry.split(":")
    is_default = parts[0] == "default"
    if is_default:
        parts = parts[1:]

    if len(parts) < 3:
        return None

    entry_type = parts[0].lower()
    object_id = parts[1] or None
    permissions = parts[2] or ""

    if entry_type not in _ENTRY_TYPES:
        logger.debug(f"Unknown ACL entry type: {entry_type}")
        return None

    return {
        "type": entry_type,
        "object_id": object_id,
        "permissions": permissions,
        "is_default": is_default,
        "has_read": AclPermission.READ.value in permissions,
        "has_write": AclPermission.WRITE.value in permissions,
        "has_execute": AclPermission.EXECUTE.value in permissions,
        "raw": entry,
    }


def parse_acl_string(acl: Optional[str]) -> List[AclEntry]:
    if not acl:
        return []
    entries = []
    for part in acl.split(","):
        parsed = parse_acl_entry(part.strip())
        if parsed:
            entries.append(parsed)
    return entries


def _has_read(entry: AclEntry) -> bool:
    if entry.get("has_read") is not None:
        return bool(entry["has_read"])
    return AclPermission.READ.value in (entry.get("permissions") or "")


def acl_to_allowed_groups(
    access_control: Optional[AccessControl],
    read_permission_required: bool = True,
    include_default: bool = True,
) -> List[str]:
    """
    Map parsed ACL entries to principal identifiers.

    - ``other`` with read access becomes ``public``
    - ``mask`` entries are ignored
    - named entries become ``user:<oid>`` / ``group:<oid>``
    - unnamed user / group entries resolve to the path owner / owning group
    """
    if not access_control or not access_control.get("acl"):
        return []

    allowed: Dict[str, None] = {}

    for entry in access_control["acl"]:
        if not include_default and entry.get("is_default"):
            continue

        has_read = _has_read(entry)
        if read_permission_required and not has_read:
            continue

        entry_type = entry.get("type")
        if entry_type == AclEntryType.OTHER.value:
            if has_read:
                allowed.setdefault("public", None)
            continue
        if entry_type == AclEntryType.MASK.value:
            continue

        object_id = entry.get("object_id")
        if object_id:
            if entry_type == AclEntryType.USER.value:
                allowed.setdefault(f"user:{object_id}", None)
            elif entry_type == AclEntryType.GROUP.value:
                allowed.setdefault(f"group:{object_id}", None)
        elif entry_type == AclEntryType.USER.value and access_control.get("owner"):
            allowed.setdefault(f"user:{access_control['owner']}", None)
        elif entry_type == AclEntryType.GROUP.value and access_control.get("group"):
            allowed.setdefault(f"group:{access_control['group']}", None)

    return list(allowed)
