"""
cjdns-admin Transport

Datagram transport to the cjdroute admin port.

Protocol:
- One bencoded message per UDP datagram
- One request, one response
- No framing beyond the datagram itself
"""

import socket
from typing import Optional


# Largest datagram we will read
MAX_DATAGRAM_SIZE = 65535


class UDPTransport:
    """
    Connected UDP socket to an admin endpoint.

    Usage:
        transport = UDPTransport("127.0.0.1", 11234, timeout=5.0)
        transport.send(request_bytes)
        data = transport.recv()
        transport.close()

    Raises OSError from send/recv (socket.timeout included) so the
    session decides how failures surface.
    """

    def __init__(self, address: str, port: int, timeout: Optional[float] = None):
        """
        Open the socket.

        Args:
            address: Host name or IP of the admin endpoint
            port: Admin UDP port
            timeout: Seconds to wait on a read, None to block
        """
        family, _, _, _, sockaddr = socket.getaddrinfo(
            address, port, type=socket.SOCK_DGRAM
        )[0]

        self._socket: Optional[socket.socket] = socket.socket(family, socket.SOCK_DGRAM)
        try:
            self._socket.settimeout(timeout)
            self._socket.connect(sockaddr)
        except OSError:
            self._socket.close()
            self._socket = None
            raise

        self.address = address
        self.port = port

    def send(self, data: bytes) -> None:
        """Write one message."""
        if self._socket is None:
            raise OSError("Transport is closed")
        self._socket.send(data)

    def recv(self) -> bytes:
        """Read one message."""
        if self._socket is None:
            raise OSError("Transport is closed")
        return self._socket.recv(MAX_DATAGRAM_SIZE)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    @property
    def is_open(self) -> bool:
        """Check if the socket is still open."""
        return self._socket is not None
