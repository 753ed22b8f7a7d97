"""
cjdns-admin Test Fixtures
"""

import hashlib
import socketserver
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import pytest

from cjdnsadmin.admin import codec
from cjdnsadmin.admin.session import Session
from cjdnsadmin.routing import Route


TEST_PASSWORD = "s3cret-admin-password"
TEST_COOKIE = "1697712345"


def make_row(ip: str, path: str, link: int = 1000, version: int = 20) -> Dict[str, Any]:
    """Raw routing table row as the daemon sends it."""
    return {"ip": ip, "path": path, "link": link, "version": version}


class FakeCjdroute:
    """
    In-process stand-in for the cjdroute admin interface.

    Checks request digests the way the daemon does: put the password
    hash back in place, re-encode, hash, compare.
    """

    def __init__(
        self,
        password: str = TEST_PASSWORD,
        cookie: Optional[str] = TEST_COOKIE,
        pages: Optional[List[List[Dict[str, Any]]]] = None,
        alive: bool = True,
    ):
        self.password = password
        self.cookie = cookie
        self.pages = pages or []
        self.alive = alive
        self.requests: List[Dict[str, Any]] = []

    def verify(self, request: Dict[str, Any]) -> bool:
        if request.get("cookie") != self.cookie:
            return False
        check = dict(request)
        check["hash"] = hashlib.sha256((self.password + self.cookie).encode()).hexdigest()
        expected = hashlib.sha256(codec.encode(check)).hexdigest()
        return request.get("hash") == expected

    def handle(self, request: Dict[str, Any]) -> Dict[str, Any]:
        self.requests.append(request)
        if not self.alive:
            return {}

        command = request.get("q")
        if command == "auth":
            if not self.verify(request):
                return {"error": "Auth failed."}
            command = request.get("aq")

        if command == "ping":
            return {"q": "pong"}
        if command == "cookie":
            return {"cookie": self.cookie} if self.cookie is not None else {}
        if command == "NodeStore_dumpTable":
            page = request.get("args", {}).get("page", 0)
            rows = self.pages[page] if page < len(self.pages) else []
            response: Dict[str, Any] = {"routingTable": rows}
            if page + 1 < len(self.pages):
                response["more"] = 1
            return response
        return {"error": "no such function"}


class FakeTransport:
    """
    Transport answering from a handler function, no sockets.

    handler receives the decoded request and returns a response
    dictionary, raw bytes, or an exception instance to raise.
    """

    def __init__(self, handler: Callable[[Dict[str, Any]], Any]):
        self.handler = handler
        self.sent: List[bytes] = []
        self.closed = 0
        self._pending: Any = None

    def send(self, data: bytes) -> None:
        self.sent.append(data)
        self._pending = self.handler(codec.decode(data))

    def recv(self) -> bytes:
        pending, self._pending = self._pending, None
        if isinstance(pending, Exception):
            raise pending
        if isinstance(pending, bytes):
            return pending
        return codec.encode(pending or {})

    def close(self) -> None:
        self.closed += 1

    @property
    def requests(self) -> List[Dict[str, Any]]:
        return [codec.decode(d) for d in self.sent]


@pytest.fixture
def fake_cjdroute() -> FakeCjdroute:
    """Fake admin interface with an empty routing table."""
    return FakeCjdroute()


@pytest.fixture
def transport_factory(fake_cjdroute):
    """Transport factory for connect(), recording created transports."""
    created: List[FakeTransport] = []

    def factory(address, port, timeout):
        transport = FakeTransport(fake_cjdroute.handle)
        created.append(transport)
        return transport

    factory.created = created
    return factory


@pytest.fixture
def session_for():
    """Build an authenticated session over a FakeCjdroute."""
    def build(cjdroute: FakeCjdroute) -> Session:
        session = Session(FakeTransport(cjdroute.handle), password=cjdroute.password)
        session.cookie = cjdroute.cookie or ""
        return session
    return build


@pytest.fixture
def udp_cjdroute():
    """
    FakeCjdroute served over UDP on localhost.

    Yields (cjdroute, port).
    """
    cjdroute = FakeCjdroute()

    class Handler(socketserver.BaseRequestHandler):
        def handle(self):
            data, sock = self.request
            response = cjdroute.handle(codec.decode(data))
            sock.sendto(codec.encode(response), self.client_address)

    server = socketserver.UDPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True, name="fake-cjdroute")
    thread.start()

    try:
        yield cjdroute, server.server_address[1]
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5.0)


@pytest.fixture
def sample_table() -> List[Route]:
    """Self route plus two nodes sharing a path label."""
    return [
        Route(ip="fc00::a", path=0x1, link=0, version=20),
        Route(ip="fc00::b", path=0x4000000000000000, link=500, version=20),
        Route(ip="fc00::c", path=0x4000000000000001, link=1500, version=20),
    ]


@pytest.fixture
def slow_udp_responder():
    """
    UDP responder that echoes the command name after a delay.

    Yields (port, delay).
    """
    delay = 0.5

    class Handler(socketserver.BaseRequestHandler):
        def handle(self):
            data, sock = self.request
            request = codec.decode(data)
            time.sleep(delay)
            sock.sendto(codec.encode({"echo": request.get("q", "")}), self.client_address)

    server = socketserver.UDPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True, name="slow-responder")
    thread.start()

    try:
        yield server.server_address[1], delay
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5.0)
