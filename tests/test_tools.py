"""
cjdns-admin Tools Tests
"""

from cjdnsadmin.tools import truncate


class TestTruncate:
    """Tests for address truncation."""

    def test_unique_last_groups(self):
        addrs = [
            "fc50:71b5:aebf:7b70:9f23:e2f5:2c50:e2a7",
            "fc12:3456:789a:bcde:f012:3456:789a:0001",
        ]
        assert truncate(addrs) == {
            addrs[0]: "e2a7",
            addrs[1]: "0001",
        }

    def test_shared_last_group(self):
        """Test a shared last group falls back to two groups."""
        addrs = [
            "fc50:71b5:aebf:7b70:9f23:e2f5:2c50:e2a7",
            "fc12:3456:789a:bcde:f012:3456:789a:e2a7",
            "fc99:0000:0000:0000:0000:0000:0000:1234",
        ]
        assert truncate(addrs) == {
            addrs[0]: "2c50:e2a7",
            addrs[1]: "789a:e2a7",
            addrs[2]: "1234",
        }

    def test_single(self):
        assert truncate(["fc00::1"]) == {"fc00::1": "1"}

    def test_empty(self):
        assert truncate([]) == {}

    def test_same_last_two_groups(self):
        """Test addresses sharing two groups still collide."""
        addrs = ["fc00:1:2:3:4:5:aaaa:bbbb", "fc00:9:8:7:6:5:aaaa:bbbb"]
        result = truncate(addrs)
        assert result[addrs[0]] == result[addrs[1]] == "aaaa:bbbb"
