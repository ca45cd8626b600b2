"""
Unit tests for ADLS Gen2 ACL parsing and allowed_groups mapping.
"""

from docsync.connectors.adls.acl import (
    acl_to_allowed_groups,
    parse_acl_entry,
    parse_acl_string,
)


class TestParseAclEntry:
    """Test parsing of single ACL entries."""

    def test_named_user_entry(self):
        """Test a named user entry with read and execute."""
        entry = parse_acl_entry("user:1111-aaaa:r-x")
        assert entry["type"] == "user"
        assert entry["object_id"] == "1111-aaaa"
        assert entry["permissions"] == "r-x"
        assert entry["has_read"] is True
        assert entry["has_write"] is False
        assert entry["has_execute"] is True
        assert entry["is_default"] is False
        assert entry["raw"] == "user:1111-aaaa:r-x"

    def test_owner_entry_has_no_object_id(self):
        """Test an unnamed entry refers to the owner."""
        entry = parse_acl_entry("user::rwx")
        assert entry["object_id"] is None
        assert entry["has_write"] is True

    def test_default_entry(self):
        """Test default: prefixed entries are flagged."""
        entry = parse_acl_entry("default:group:2222:r--")
        assert entry["is_default"] is True
        assert entry["type"] == "group"
        assert entry["object_id"] == "2222"

    def test_malformed_entries(self):
        """Test too few fields, unknown types and empty input return None."""
        assert parse_acl_entry("user:abc") is None
        assert parse_acl_entry("robot:abc:rwx") is None
        assert parse_acl_entry("") is None
        assert parse_acl_entry(None) is None


class TestParseAclString:
    """Test parsing of full ACL strings."""

    def test_parses_and_drops_invalid(self):
        """Test entries are trimmed and invalid ones dropped."""
        entries = parse_acl_string("user::rwx, group::r-x,bogus,other::---")
        assert [e["type"] for e in entries] == ["user", "group", "other"]

    def test_empty(self):
        """Test an empty ACL yields no entries."""
        assert parse_acl_string("") == []
        assert parse_acl_string(None) == []


class TestAclToAllowedGroups:
    """Test mapping parsed ACLs to allowed_groups."""

    def _access_control(self, acl, owner="owner-oid", group="group-oid"):
        return {"owner": owner, "group": group, "permissions": "rwxr-x---", "acl": parse_acl_string(acl)}

    def test_named_and_owner_entries(self):
        """Test named entries map to user:/group: and unnamed to owner/owning group."""
        ac = self._access_control("user::rwx,user:u1:r--,group::r-x,group:g1:r-x,mask::r-x,other::---")
        assert acl_to_allowed_groups(ac) == ["user:owner-oid", "user:u1", "group:group-oid", "group:g1"]

    def test_other_with_read_is_public(self):
        """Test readable other entries map to public."""
        ac = self._access_control("user::rwx,other::r--")
        assert "public" in acl_to_allowed_groups(ac)

    def test_entries_without_read_skipped(self):
        """Test write-only entries are skipped when read is required."""
        ac = self._access_control("user:u1:-w-,group:g1:r--")
        assert acl_to_allowed_groups(ac) == ["group:g1"]

    def test_read_not_required(self):
        """Test write-only entries are kept when read is not required."""
        ac = self._access_control("user:u1:-w-")
        assert acl_to_allowed_groups(ac, read_permission_required=False) == ["user:u1"]

    def test_other_without_read_never_public(self):
        """Test other without read is not public even when read is not required."""
        ac = self._access_control("other::--x")
        assert acl_to_allowed_groups(ac, read_permission_required=False) == []

    def test_default_entries(self):
        """Test default entries are included unless disabled."""
        ac = self._access_control("group:g1:r--,default:group:g2:r--")
        assert acl_to_allowed_groups(ac) == ["group:g1", "group:g2"]
        assert acl_to_allowed_groups(ac, include_default=False) == ["group:g1"]

    def test_deduplicates(self):
        """Test duplicate principals appear once in first-seen order."""
        ac = self._access_control("group:g1:r--,default:group:g1:r-x,user:u1:r--")
        assert acl_to_allowed_groups(ac) == ["group:g1", "user:u1"]

    def test_missing_acl(self):
        """Test missing access control yields no groups."""
        assert acl_to_allowed_groups(None) == []
        assert acl_to_allowed_groups({"owner": "x", "acl": []}) == []
