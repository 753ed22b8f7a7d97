"""
cjdns-admin Node Configuration

Reads and writes cjdroute.conf.

The file is JSON with // and /* */ comments. Comments are stripped
before parsing and are not written back. Keys this module does not
model are kept in `extra` (top level) or left inside the verbatim
interface/router blocks, so a read followed by a write loses nothing
but comments and formatting.
"""

import ipaddress
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field

from ..crypto.keys import derive_ipv6, InvalidKeyError


logger = logging.getLogger("cjdnsadmin.node")

DEFAULT_CONF_PATH = Path("/etc/cjdroute.conf")

# Top-level keys with a typed field on CjdrouteConf
_KNOWN_KEYS = {
    "privateKey",
    "publicKey",
    "ipv6",
    "authorizedPasswords",
    "admin",
    "interfaces",
    "router",
    "resetAfterInactivitySeconds",
    "pidFile",
    "version",
}


class ConfError(Exception):
    """Exception raised for unreadable or malformed configuration."""
    pass


@dataclass
class AuthorizedPassword:
    """Credential a peer may use to connect to us."""
    password: str
    extra: Dict[str, Any] = field(default_factory=dict)  # name, user, ...

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuthorizedPassword':
        if not isinstance(data, dict) or not isinstance(data.get("password"), str):
            raise ConfError(f"Invalid authorizedPasswords entry: {data!r}")
        extra = {k: v for k, v in data.items() if k != "password"}
        return cls(password=data["password"], extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        result = {"password": self.password}
        result.update(self.extra)
        return result


@dataclass
class AdminBlock:
    """Admin RPC server settings."""
    bind: str = ""
    password: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AdminBlock':
        if not isinstance(data, dict):
            raise ConfError(f"Invalid admin block: {data!r}")
        return cls(
            bind=str(data.get("bind", "")),
            password=str(data.get("password", "")),
            extra={k: v for k, v in data.items() if k not in ("bind", "password")},
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"bind": self.bind, "password": self.password}
        result.update(self.extra)
        return result

    def endpoint(self) -> Tuple[str, Optional[int]]:
        """
        Split bind into (address, port).

        Handles "127.0.0.1:11234" and "[::1]:11234". Port is None when
        missing or not numeric.
        """
        host, sep, port = self.bind.rpartition(":")
        if not sep:
            return self.bind, None
        host = host.strip("[]")
        try:
            return host, int(port)
        except ValueError:
            return host, None

    @property
    def address(self) -> str:
        return self.endpoint()[0]

    @property
    def port(self) -> Optional[int]:
        return self.endpoint()[1]


@dataclass
class CjdrouteConf:
    """
    Complete cjdroute configuration.
    """
    # Identity
    private_key: Optional[str] = None
    public_key: Optional[str] = None
    ipv6: Optional[str] = None

    # Credentials
    authorized_passwords: List[AuthorizedPassword] = field(default_factory=list)
    admin: AdminBlock = field(default_factory=AdminBlock)

    # Switch interfaces and router, kept verbatim
    interfaces: Dict[str, Any] = field(default_factory=dict)
    router: Dict[str, Any] = field(default_factory=dict)

    # Misc
    reset_after_inactivity_seconds: Optional[int] = None
    pid_file: Optional[str] = None
    version: Optional[int] = None

    # Unmodelled top-level keys
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CjdrouteConf':
        """
        Build configuration from parsed JSON.

        Raises:
            ConfError: If a known key has the wrong type
        """
        if not isinstance(data, dict):
            raise ConfError("Configuration must be an object")

        conf = cls()
        conf.private_key = _optional(data, "privateKey", str)
        conf.public_key = _optional(data, "publicKey", str)
        conf.ipv6 = _optional(data, "ipv6", str)
        conf.reset_after_inactivity_seconds = _optional(data, "resetAfterInactivitySeconds", int)
        conf.pid_file = _optional(data, "pidFile", str)
        conf.version = _optional(data, "version", int)

        passwords = data.get("authorizedPasswords", [])
        if not isinstance(passwords, list):
            raise ConfError("authorizedPasswords must be a list")
        conf.authorized_passwords = [AuthorizedPassword.from_dict(p) for p in passwords]

        if "admin" in data:
            conf.admin = AdminBlock.from_dict(data["admin"])

        conf.interfaces = _optional(data, "interfaces", dict) or {}
        conf.router = _optional(data, "router", dict) or {}

        conf.extra = {k: v for k, v in data.items() if k not in _KNOWN_KEYS}
        return conf

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the cjdroute.conf key layout."""
        result: Dict[str, Any] = {}
        if self.private_key is not None:
            result["privateKey"] = self.private_key
        if self.public_key is not None:
            result["publicKey"] = self.public_key
        if self.ipv6 is not None:
            result["ipv6"] = self.ipv6

        result["authorizedPasswords"] = [p.to_dict() for p in self.authorized_passwords]
        result["admin"] = self.admin.to_dict()
        result["interfaces"] = self.interfaces
        result["router"] = self.router

        if self.reset_after_inactivity_seconds is not None:
            result["resetAfterInactivitySeconds"] = self.reset_after_inactivity_seconds
        if self.pid_file is not None:
            result["pidFile"] = self.pid_file
        if self.version is not None:
            result["version"] = self.version

        result.update(self.extra)
        return result

    def check_identity(self) -> bool:
        """
        Check that ipv6 is the address derived from public_key.

        Returns:
            False if either is missing, malformed or they disagree
        """
        if not self.public_key or not self.ipv6:
            return False

        try:
            derived = derive_ipv6(self.public_key)
            return ipaddress.ip_address(derived) == ipaddress.ip_address(self.ipv6)
        except (InvalidKeyError, ValueError) as e:
            logger.debug(f"Identity check failed: {e}")
            return False


def _optional(data: Dict[str, Any], key: str, kind: type) -> Any:
    if key not in data:
        return None
    value = data[key]
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfError(f"{key} must be {kind.__name__}, got {type(value).__name__}")
    return value


def strip_comments(text: str) -> str:
    """
    Remove // and /* */ comments outside of string literals.

    Newlines inside comments are kept so JSON error positions still
    point at the right line.
    """
    out = []
    i = 0
    n = len(text)
    in_string = False

    while i < n:
        c = text[i]

        if in_string:
            out.append(c)
            if c == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if c == '"':
                in_string = False
            i += 1
            continue

        if c == '"':
            in_string = True
            out.append(c)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end < 0 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end < 0:
                raise ConfError("Unterminated block comment")
            out.append("\n" * text.count("\n", i, end))
            i = end + 2
        else:
            out.append(c)
            i += 1

    return "".join(out)


def parse_conf(text: str) -> CjdrouteConf:
    """
    Parse cjdroute.conf text.

    Raises:
        ConfError: If the text is not valid commented JSON
    """
    try:
        data = json.loads(strip_comments(text))
    except json.JSONDecodeError as e:
        raise ConfError(f"Invalid configuration: {e}")
    return CjdrouteConf.from_dict(data)


def read_conf(path: Union[str, Path] = DEFAULT_CONF_PATH) -> CjdrouteConf:
    """
    Read cjdroute.conf from disk.

    Raises:
        ConfError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfError(f"Cannot read {path}: {e}")

    conf = parse_conf(text)
    logger.debug(f"Loaded node configuration from {path}")
    return conf


def write_conf(path: Union[str, Path], conf: CjdrouteConf) -> None:
    """
    Write cjdroute.conf to disk as plain JSON.

    Raises:
        ConfError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.write_text(json.dumps(conf.to_dict(), indent=4) + "\n", encoding="utf-8")
    except OSError as e:
        raise ConfError(f"Cannot write {path}: {e}")
