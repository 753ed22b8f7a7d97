"""
cjdns-admin Admin Module

Client side of the cjdroute admin RPC interface.

Protocol: bencoded dictionaries over UDP, optionally authenticated
with a cookie and a SHA-256 digest.
"""

from .session import (
    Session,
    connect,
    ping,
    cookie,
    AdminError,
    NotRespondingError,
    AuthenticationRejectedError,
    NoCookieError,
)

from .codec import EncodeError
from .transport import UDPTransport

__all__ = [
    'Session',
    'connect',
    'ping',
    'cookie',
    'AdminError',
    'NotRespondingError',
    'AuthenticationRejectedError',
    'NoCookieError',
    'EncodeError',
    'UDPTransport',
]
