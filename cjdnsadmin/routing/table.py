"""
cjdns-admin Routing Table

Retrieves the node's routing table through NodeStore_dumpTable.

Design:
- The daemon serves the table in pages
- A page carries "more" when another page follows
- Paths arrive as dotted hex ("0000.0000.0000.0013") and are kept
  as unsigned 64-bit integers
- Rows that do not decode are dropped; one bad row never fails a page
"""

import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

from .. import PATH_LENGTH, SELF_PATH


logger = logging.getLogger("cjdnsadmin.routing")

COMMAND_DUMP_TABLE = "NodeStore_dumpTable"

# Characters separating path groups on the wire
PATH_SEPARATORS = ".:"


@dataclass(frozen=True)
class Route:
    """
    Entry in the routing table.
    """
    ip: str           # Node's IPv6 address
    path: int         # Routing path to the node (64 bits)
    link: int         # Link quality, lower is better (unitless)
    version: int      # Node's protocol version (informational)

    @property
    def is_self(self) -> bool:
        """Check if this is the route to ourselves."""
        return self.path == SELF_PATH

    @property
    def path_str(self) -> str:
        """Path in the daemon's dotted form."""
        return format_path(self.path)

    def to_dict(self) -> dict:
        return {
            "ip": self.ip,
            "path": self.path_str,
            "link": self.link,
            "version": self.version,
        }


def parse_path(text: Any) -> Optional[int]:
    """
    Parse a dotted hex path.

    Args:
        text: Path as sent by the daemon

    Returns:
        Path as an integer, or None unless it decodes to exactly 8 bytes
    """
    if isinstance(text, bytes):
        text = text.decode("latin-1")
    if not isinstance(text, str):
        return None

    for sep in PATH_SEPARATORS:
        text = text.replace(sep, "")

    # bytes.fromhex would skip whitespace
    if any(c.isspace() for c in text):
        return None

    try:
        raw = bytes.fromhex(text)
    except ValueError:
        return None

    if len(raw) != PATH_LENGTH:
        return None

    return int.from_bytes(raw, "big")


def format_path(path: int) -> str:
    """Render a path as four dot-separated groups of four hex digits."""
    hexed = f"{path:016x}"
    return ".".join(hexed[i:i + 4] for i in range(0, 16, 4))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_route(row: Any) -> Optional[Route]:
    """
    Decode one raw routing table row.

    Returns:
        Route, or None if the row is malformed
    """
    if not isinstance(row, dict):
        return None

    path = parse_path(row.get("path"))
    if path is None:
        return None

    ip = row.get("ip")
    if isinstance(ip, bytes):
        ip = ip.decode("latin-1")
    link = row.get("link")
    version = row.get("version")

    if not isinstance(ip, str):
        return None
    if not _is_int(link) or link < 0:
        return None
    if not _is_int(version):
        return None

    return Route(ip=ip, path=path, link=link, version=version)


def _parse_page(response: Dict[str, Any]) -> Optional[List[Route]]:
    raw_table = response.get("routingTable")
    if not isinstance(raw_table, list):
        return None

    routes = []
    for row in raw_table:
        route = parse_route(row)
        if route is None:
            logger.debug(f"Discarding malformed route: {row!r}")
            continue
        routes.append(route)
    return routes


def dump_table(session, page: int = -1) -> List[Route]:
    """
    Retrieve the routing table. Requires authorization.

    Args:
        session: Connected admin session
        page: Page to fetch, or negative for the whole table

    Returns:
        Routes in the order the daemon sent them (possibly empty)
    """
    get_all = page < 0
    if get_all:
        page = 0

    table: List[Route] = []
    while True:
        response = session.send(COMMAND_DUMP_TABLE, {"page": page})
        routes = _parse_page(response)
        if routes is None:
            logger.debug(f"No routing table in response to page {page}")
            break
        table.extend(routes)

        if get_all and "more" in response:
            page += 1
        else:
            break

    logger.debug(f"Fetched {len(table)} routes ({page + 1} page(s))")
    return table
