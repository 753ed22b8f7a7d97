"""
cjdns-admin Session

Authenticated request/response exchange with the cjdroute admin
interface.

Bootstrap (connect()):
1. Unauthenticated ping, expecting {"q": "pong"}
2. Cookie request, expecting {"cookie": "..."}
3. With a password, one authenticated ping to confirm it

Authenticated requests carry a two-pass digest:
- hash = hex(SHA-256(password + cookie))
- hash = hex(SHA-256(bencode(request with the first hash)))

A session holds one transport. At most one exchange is in flight on
it at a time; the protocol has no request IDs to match interleaved
responses.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .. import DEFAULT_ADDRESS, DEFAULT_PORT
from ..crypto.primitives import sha256_hex
from . import codec
from .transport import UDPTransport


logger = logging.getLogger("cjdnsadmin.admin")


# Admin commands
COMMAND_AUTH = "auth"
COMMAND_PING = "ping"
COMMAND_COOKIE = "cookie"

# Status strings returned by the daemon
STATUS_PING_OK = "pong"
ERROR_AUTH_FAILED = "Auth failed."


class AdminError(Exception):
    """Base class for admin bootstrap failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotRespondingError(AdminError):
    """The admin interface did not answer the ping."""


class AuthenticationRejectedError(AdminError):
    """The admin interface rejected the password."""


class NoCookieError(AdminError):
    """The admin interface answered but did not offer a cookie."""


TransportFactory = Callable[[str, int, Optional[float]], Any]


def _normalize(address: str, port: Union[int, str, None]) -> Tuple[str, int]:
    """Apply the loopback/11234 defaults and check the port."""
    if not address:
        address = DEFAULT_ADDRESS
    if not port:
        port = DEFAULT_PORT
    try:
        number = int(port)
    except (TypeError, ValueError):
        raise NotRespondingError(f"Invalid admin port: {port!r}")
    if not 1 <= number <= 65535:
        raise NotRespondingError(f"Admin port out of range: {number}")
    return address, number


def _to_bytes(value: Union[str, bytes]) -> bytes:
    return value if isinstance(value, bytes) else value.encode()


class Session:
    """
    One admin endpoint, with optional password and cookie.

    Usage:
        with connect("127.0.0.1", 11234, password) as session:
            response = session.send("NodeStore_dumpTable", {"page": 0})

    The session owns its transport; close() releases it.
    """

    def __init__(
        self,
        transport: Any,
        address: str = DEFAULT_ADDRESS,
        port: int = DEFAULT_PORT,
        password: str = "",
    ):
        """
        Initialize session.

        Args:
            transport: Object with send(bytes), recv() -> bytes, close()
            address: Admin endpoint host
            port: Admin endpoint port
            password: Admin password (empty for unauthenticated use)
        """
        self.address = address
        self.port = port
        self.password = password
        self.cookie: Union[str, bytes] = ""

        self._transport = transport
        self._lock = threading.Lock()

    def __enter__(self) -> 'Session':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def authenticated(self) -> bool:
        """Check if requests will carry authentication."""
        return bool(self.password and self.cookie)

    def close(self) -> None:
        """Release the transport."""
        if self._transport is not None:
            self._transport.close()
            self._transport = None

    def build_request(self, command: str, args: Optional[Dict[str, Any]] = None) -> bytes:
        """
        Build the serialized request for a command.

        Uses the authenticated form when both password and cookie are
        set, the plain form otherwise.

        Args:
            command: Admin function name
            args: Function arguments, omitted when None

        Returns:
            bytes: Bencoded request, ready to send
        """
        if not self.authenticated:
            message: Dict[str, Any] = {"q": command}
            if args is not None:
                message["args"] = args
            return codec.encode(message)

        message = {
            "q": COMMAND_AUTH,
            "aq": command,
            "cookie": self.cookie,
            "hash": sha256_hex(_to_bytes(self.password) + _to_bytes(self.cookie)),
        }
        if args is not None:
            message["args"] = args

        # The final hash covers the request as serialized with the
        # password hash in place.
        message["hash"] = sha256_hex(codec.encode(message))
        return codec.encode(message)

    def send(self, command: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Call an admin function.

        Encoding, transport and decode failures are not raised; they
        produce an empty dictionary. Callers check for the keys they
        expect.

        A transport failure (timeout included) closes the session, since
        a late reply would otherwise be read as the answer to the next
        request. Later calls return {}.

        Args:
            command: Admin function name (empty is a no-op)
            args: Function arguments

        Returns:
            Response dictionary, {} if none was usable
        """
        if not command:
            return {}

        try:
            request = self.build_request(command, args)
        except codec.EncodeError as e:
            logger.debug(f"{command}: {e}")
            return {}

        with self._lock:
            if self._transport is None:
                logger.debug(f"{command}: session is closed")
                return {}

            try:
                self._transport.send(request)
                data = self._transport.recv()
            except OSError as e:
                logger.debug(f"{command}: transport error, closing session: {e}")
                self._transport.close()
                self._transport = None
                return {}

        return codec.decode(data)

    def ping(self) -> Tuple[bool, bool]:
        """
        Ping the admin interface.

        Returns:
            Tuple of (up, authenticated_ok). authenticated_ok is False
            only when the daemon explicitly rejected our credentials.
        """
        return _interpret_ping(self.send(COMMAND_PING))

    def get_cookie(self) -> Union[str, bytes]:
        """Request a cookie. Returns "" if none was offered."""
        return _extract_cookie(self.send(COMMAND_COOKIE))


def _interpret_ping(response: Dict[str, Any]) -> Tuple[bool, bool]:
    authenticated_ok = response.get("error") != ERROR_AUTH_FAILED
    up = response.get("q") == STATUS_PING_OK
    return up, authenticated_ok


def _extract_cookie(response: Dict[str, Any]) -> Union[str, bytes]:
    # Non-UTF-8 cookies stay bytes so they go back on the wire unchanged.
    value = response.get("cookie")
    if not isinstance(value, (str, bytes)):
        return ""
    return value


def connect(
    address: str = "",
    port: Union[int, str, None] = None,
    password: str = "",
    timeout: Optional[float] = None,
    transport_factory: Optional[TransportFactory] = None,
) -> Session:
    """
    Open an admin session.

    Pings the interface, fetches a cookie and, if a password is given,
    confirms the daemon accepts it. It is the caller's responsibility
    to close() the returned session.

    Args:
        address: Admin host (default 127.0.0.1)
        port: Admin port (default 11234)
        password: Admin password
        timeout: Read timeout in seconds, None to block
        transport_factory: Callable (address, port, timeout) -> transport

    Returns:
        Session with cookie set

    Raises:
        NotRespondingError: Invalid port, or no pong from the interface
        AuthenticationRejectedError: Password rejected
        NoCookieError: No cookie offered
    """
    address, port = _normalize(address, port)
    factory = transport_factory or UDPTransport

    try:
        transport = factory(address, port, timeout)
    except OSError as e:
        raise NotRespondingError(f"Could not reach admin interface at {address}:{port}: {e}")

    session = Session(transport, address=address, port=port, password=password)
    try:
        _bootstrap(session)
    except AdminError:
        session.close()
        raise

    logger.debug(f"Connected to {address}:{port} (authenticated={session.authenticated})")
    return session


def _bootstrap(session: Session) -> None:
    up, authenticated_ok = session.ping()
    if session.password and not authenticated_ok:
        raise AuthenticationRejectedError("Admin interface rejected password")
    if not up:
        raise NotRespondingError("Admin interface did not respond to ping")

    cookie_value = session.get_cookie()
    if not cookie_value:
        raise NoCookieError("Admin interface did not offer cookie")
    session.cookie = cookie_value

    if session.password:
        response = session.send(COMMAND_PING)
        if response.get("error") == ERROR_AUTH_FAILED:
            raise AuthenticationRejectedError("Admin interface rejected password")
        if not response:
            raise NotRespondingError("Admin interface did not answer authenticated ping")


def _open(address: str, port: Union[int, str, None], timeout: Optional[float]) -> Optional[Session]:
    try:
        address, port = _normalize(address, port)
        transport = UDPTransport(address, port, timeout)
    except (NotRespondingError, OSError) as e:
        logger.debug(f"Could not open transport to {address}:{port}: {e}")
        return None
    return Session(transport, address=address, port=port)


def ping(
    address: str = "",
    port: Union[int, str, None] = None,
    timeout: Optional[float] = None,
) -> Tuple[bool, bool]:
    """
    Check whether an admin interface is running, without a password.

    Returns:
        Tuple of (up, authenticated_ok)
    """
    session = _open(address, port, timeout)
    if session is None:
        return False, True
    with session:
        return session.ping()


def cookie(
    address: str = "",
    port: Union[int, str, None] = None,
    timeout: Optional[float] = None,
) -> Union[str, bytes]:
    """Fetch a cookie from an admin interface. Returns "" on failure."""
    session = _open(address, port, timeout)
    if session is None:
        return ""
    with session:
        return session.get_cookie()
