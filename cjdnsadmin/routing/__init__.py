"""
cjdns-admin Routing Module

Routing table retrieval and analysis.

Components:
- table.py: Paginated NodeStore_dumpTable retrieval and row decoding
- filter.py: Host, link quality and hop distance filtering
"""

from .table import (
    Route,
    dump_table,
    parse_path,
    parse_route,
    format_path,
)

from .filter import (
    hop_mask,
    filter_routes,
    peers,
)

__all__ = [
    # Table
    'Route',
    'dump_table',
    'parse_path',
    'parse_route',
    'format_path',
    # Filter
    'hop_mask',
    'filter_routes',
    'peers',
]
