"""
cjdns-admin Display Tools
"""

from typing import Dict, Iterable


def truncate(addrs: Iterable[str]) -> Dict[str, str]:
    """
    Shorten full-length IPv6 addresses for display.

    Each address maps to its last group ("e2a7"). If another address
    ends in the same group, the last two groups are used instead
    ("2c50:e2a7"). No DNS lookups are made.

    Two addresses that also share their second-to-last group still
    truncate to the same string.
    """
    addrs = list(addrs)
    groups = [addr.split(":") for addr in addrs]
    result = {}

    for i, addr in enumerate(addrs):
        last = groups[i][-1]
        collides = any(
            j != i and other[-1] == last
            for j, other in enumerate(groups)
        )
        if collides and len(groups[i]) > 1:
            result[addr] = ":".join(groups[i][-2:])
        else:
            result[addr] = last

    return result
