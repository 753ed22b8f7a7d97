"""
cjdns-admin Route Filtering

Filters a routing table by target host, link quality and path distance.

Hop distance:
A cjdns path encodes the sequence of switch interfaces from us to the
target, with a 1 bit marking its end. For another route c, the bits
below c's highest set bit form its label. Route r is counted as one
hop away from c when r's path carries the same low bits:

    mask = 0xFFFFFFFFFFFFFFFF >> (64 - floor(log2(c.path)))
    mask & r.path == mask & c.path

This is a structural approximation, not a graph traversal.
"""

from typing import List, Sequence, Set

from .. import SELF_PATH
from .table import Route, dump_table


MAX_PATH = 0xFFFFFFFFFFFFFFFF


def hop_mask(path: int) -> int:
    """
    Label mask for a path.

    floor(log2(path)) is path.bit_length() - 1, so the shift is
    65 - bit_length. A zero path has no label and yields 0.
    """
    if path <= 0:
        return 0
    return MAX_PATH >> (65 - path.bit_length())


def _count_hops(table: Sequence[Route], index: int, max_hops: int) -> int:
    route = table[index]
    hops = 0

    for i, candidate in enumerate(table):
        # Skip the route itself, the self route and unroutable paths
        if i == index or candidate.path == SELF_PATH or candidate.path == 0:
            continue

        mask = hop_mask(candidate.path)
        if mask & route.path == mask & candidate.path:
            hops += 1
            if hops >= max_hops:
                break

    return hops


def filter_routes(
    table: Sequence[Route],
    host: str = "",
    max_hops: int = 0,
    max_link: int = 0,
) -> List[Route]:
    """
    Filter a routing table.

    If host is given, only routes to that IP survive. If max_hops is
    positive, routes that are max_hops or more hops away are removed.
    If max_link is positive, routes with a greater (worse) link are
    removed. With neither host nor max_hops there is nothing to select
    on and the result is empty.

    Args:
        table: Routing table
        host: Target IP to keep
        max_hops: Hop limit, 0 to disable
        max_link: Link quality limit, 0 to disable

    Returns:
        Surviving routes in table order
    """
    if not table or (not host and max_hops <= 0):
        return []

    routes = []
    for i, route in enumerate(table):
        if host and route.ip != host:
            continue
        if max_link > 0 and route.link > max_link:
            continue
        if max_hops > 0 and _count_hops(table, i, max_hops) >= max_hops:
            continue
        routes.append(route)

    return routes


def peers(session, max_hops: int) -> Set[str]:
    """
    Addresses of nodes within a number of hops.

    A value of 1 returns direct peers, 2 adds the peers of peers.
    A value of 0 returns every address in the routing table.

    Args:
        session: Connected admin session
        max_hops: Hop limit

    Returns:
        Set of IPv6 addresses, never including our own
    """
    routes = dump_table(session, -1)
    if max_hops > 0:
        routes = filter_routes(routes, "", max_hops, 0)

    return {r.ip for r in routes if r.path != SELF_PATH}
