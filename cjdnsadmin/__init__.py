"""
cjdns-admin - Client for the cjdns admin interface

Talks to a running cjdroute over its admin RPC port, dumps the
routing table and reasons about path distances.

This package contains:
- admin/    : Wire codec, transport and authenticated session
- routing/  : Routing table retrieval and hop filtering
- crypto/   : Hashing and key/address derivation
- node/     : cjdroute.conf reader and writer
- config.py : Client configuration
- tools.py  : Display helpers
"""

__version__ = "0.2.0"
__author__ = "cjdns-admin Project"

# Admin interface defaults
DEFAULT_ADDRESS = "127.0.0.1"
DEFAULT_PORT = 11234
PATH_LENGTH = 8  # bytes
SELF_PATH = 1
