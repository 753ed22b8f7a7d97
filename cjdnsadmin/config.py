"""
cjdns-admin Configuration Management

Handles loading and validation of client configuration from TOML file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from dataclasses import dataclass, field

import toml

from . import DEFAULT_ADDRESS, DEFAULT_PORT
from .node.conf import DEFAULT_CONF_PATH, ConfError, read_conf


logger = logging.getLogger("cjdnsadmin.config")

# Default configuration path
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "cjdnsadmin" / "config.toml"

# Default read timeout for the CLI (seconds)
DEFAULT_TIMEOUT = 5.0

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AdminConfig:
    """Admin endpoint configuration."""
    address: str = DEFAULT_ADDRESS
    port: int = DEFAULT_PORT
    password: str = ""
    timeout: float = DEFAULT_TIMEOUT  # seconds


@dataclass
class NodeConfig:
    """Local node configuration."""
    conf_path: Path = field(default_factory=lambda: DEFAULT_CONF_PATH)


@dataclass
class Config:
    """
    Complete client configuration.
    """
    # Sub-configurations
    admin: AdminConfig = field(default_factory=AdminConfig)
    node: NodeConfig = field(default_factory=NodeConfig)

    # Paths
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG_PATH)

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from file.

        Args:
            config_path: Path to config file (default: ~/.config/cjdnsadmin/config.toml)

        Returns:
            Loaded configuration, defaults if the file does not exist

        Raises:
            ValueError: If the file exists but cannot be parsed
        """
        path = config_path or DEFAULT_CONFIG_PATH
        config = cls()
        config.config_path = path

        if not path.exists():
            return config

        try:
            data = toml.load(str(path))
        except (toml.TomlDecodeError, OSError) as e:
            raise ValueError(f"Cannot load {path}: {e}")

        config._apply_dict(data)
        return config

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary data to config."""
        # Top-level settings
        if "log_level" in data:
            self.log_level = str(data["log_level"]).upper()
        if "log_file" in data:
            self.log_file = Path(data["log_file"])

        # Admin config
        if "admin" in data:
            a = data["admin"]
            if "address" in a:
                self.admin.address = str(a["address"])
            if "port" in a:
                self.admin.port = int(a["port"])
            if "password" in a:
                self.admin.password = str(a["password"])
            if "timeout" in a:
                self.admin.timeout = float(a["timeout"])

        # Node config
        if "node" in data:
            n = data["node"]
            if "conf_path" in n:
                self.node.conf_path = Path(n["conf_path"])

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.admin.port < 1 or self.admin.port > 65535:
            raise ValueError(f"Invalid admin port: {self.admin.port}")

        if self.admin.timeout <= 0:
            raise ValueError(f"Invalid timeout: {self.admin.timeout}")

        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

    def admin_credentials(self) -> Tuple[str, int, str]:
        """
        Resolve the admin endpoint and password.

        Without a configured password, the admin block of the node's
        cjdroute.conf is used if it can be read.

        Returns:
            Tuple of (address, port, password)
        """
        address = self.admin.address
        port = self.admin.port
        password = self.admin.password

        if password:
            return address, port, password

        try:
            conf = read_conf(self.node.conf_path)
        except ConfError as e:
            logger.debug(f"No admin password from node configuration: {e}")
            return address, port, password

        password = conf.admin.password
        conf_address, conf_port = conf.admin.endpoint()
        if conf_address and address == DEFAULT_ADDRESS:
            address = conf_address
        if conf_port and port == DEFAULT_PORT:
            port = conf_port

        return address, port, password
