#!/usr/bin/env python3
"""
cjdnsctl - cjdns Admin CLI

Command-line interface for the cjdroute admin interface.

Usage:
    cjdnsctl ping        - Check that cjdroute is running
    cjdnsctl cookie      - Request a cookie
    cjdnsctl routes      - Display the routing table
    cjdnsctl peers       - List nodes within a hop limit
    cjdnsctl call        - Call an admin function
    cjdnsctl conf        - Show local node identity
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import Optional

from cjdnsadmin import __version__
from cjdnsadmin.admin import (
    codec,
    Session,
    connect,
    ping,
    cookie,
    AdminError,
    NotRespondingError,
    AuthenticationRejectedError,
    NoCookieError,
)
from cjdnsadmin.config import Config, DEFAULT_CONFIG_PATH
from cjdnsadmin.node import ConfError, read_conf
from cjdnsadmin.routing import dump_table, filter_routes, peers
from cjdnsadmin.tools import truncate


class AdminCtl:
    """cjdnsctl CLI application."""

    def __init__(self, config: Config):
        """Initialize CLI with resolved configuration."""
        self.config = config
        self.address, self.port, self.password = config.admin_credentials()
        self.timeout = config.admin.timeout

    def _connect(self) -> Optional[Session]:
        """Open an authenticated session, reporting failures."""
        try:
            return connect(self.address, self.port, self.password, timeout=self.timeout)
        except AuthenticationRejectedError:
            print("Error: cjdroute rejected the admin password", file=sys.stderr)
        except NoCookieError:
            print("Error: cjdroute answered but offered no cookie", file=sys.stderr)
        except NotRespondingError:
            print(f"Error: cjdroute is not responding at {self.address}:{self.port}", file=sys.stderr)
        except AdminError as e:
            print(f"Error: {e.message}", file=sys.stderr)
        return None

    def ping(self) -> int:
        """Check that cjdroute is running."""
        up, _ = ping(self.address, self.port, timeout=self.timeout)
        if not up:
            print(f"cjdroute is not responding at {self.address}:{self.port}")
            return 1

        print(f"cjdroute is running at {self.address}:{self.port}")
        return 0

    def cookie(self) -> int:
        """Request a cookie."""
        value = cookie(self.address, self.port, timeout=self.timeout)
        if not value:
            print("Error: no cookie offered", file=sys.stderr)
            return 1

        print(value if isinstance(value, str) else value.hex())
        return 0

    def routes(
        self,
        page: int = -1,
        host: str = "",
        max_hops: int = 0,
        max_link: int = 0,
        as_json: bool = False,
    ) -> int:
        """Display the routing table."""
        session = self._connect()
        if session is None:
            return 1

        with session:
            table = dump_table(session, page)

        if host or max_hops > 0:
            table = filter_routes(table, host, max_hops, max_link)
        elif max_link > 0:
            table = [r for r in table if r.link <= max_link]

        if as_json:
            print(json.dumps([r.to_dict() for r in table], indent=2))
            return 0

        if not table:
            print("No routes in table")
            return 0

        print(f"Routing Table ({len(table)} entries)")
        print("=" * 80)
        print(f"{'IP':<40} {'Path':<20} {'Link':<12} {'Ver':<4}")
        print("-" * 80)

        for route in table:
            print(f"{route.ip:<40} {route.path_str:<20} {route.link:<12} {route.version:<4}")

        return 0

    def peers(self, max_hops: int = 1, short: bool = False) -> int:
        """List nodes within a hop limit."""
        session = self._connect()
        if session is None:
            return 1

        with session:
            addrs = sorted(peers(session, max_hops))

        if not addrs:
            print("No peers found")
            return 0

        names = truncate(addrs) if short else {a: a for a in addrs}

        if max_hops > 0:
            print(f"Peers within {max_hops} hop(s) ({len(addrs)})")
        else:
            print(f"Known nodes ({len(addrs)})")
        print("=" * 44)
        for addr in addrs:
            print(names[addr])

        return 0

    def call(self, command: str, raw_args: Optional[str] = None) -> int:
        """Call an admin function and print the response."""
        args = None
        if raw_args:
            try:
                args = json.loads(raw_args)
            except json.JSONDecodeError as e:
                print(f"Error: invalid JSON arguments: {e}", file=sys.stderr)
                return 1
            if not isinstance(args, dict):
                print("Error: arguments must be a JSON object", file=sys.stderr)
                return 1
            try:
                codec.encode(args)
            except codec.EncodeError as e:
                print(f"Error: invalid arguments: {e}", file=sys.stderr)
                return 1

        session = self._connect()
        if session is None:
            return 1

        with session:
            response = session.send(command, args)

        if not response:
            print("Error: no response", file=sys.stderr)
            return 1

        print(json.dumps(response, indent=2, default=str))
        return 0 if "error" not in response or response["error"] == "none" else 1

    def conf(self, path: Optional[Path] = None) -> int:
        """Show local node identity."""
        path = path or self.config.node.conf_path
        try:
            node = read_conf(path)
        except ConfError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print("cjdroute Node")
        print("=" * 40)
        print(f"Config:     {path}")
        print(f"IPv6:       {node.ipv6 or 'unknown'}")
        print(f"Public key: {node.public_key or 'unknown'}")
        print(f"Admin:      {node.admin.bind or '(not bound)'}")
        print(f"Passwords:  {len(node.authorized_passwords)} authorized")
        if node.version is not None:
            print(f"Version:    {node.version}")

        if node.check_identity():
            print("Identity:   address matches public key")
            return 0

        print("Identity:   address does NOT match public key")
        return 1


def _setup_logging(config: Config, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        filename=str(config.log_file) if config.log_file else None,
    )


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="cjdns admin CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  ping        Check that cjdroute is running
  cookie      Request a cookie
  routes      Display the routing table
  peers       List nodes within a hop limit
  call        Call an admin function
  conf        Show local node identity

Examples:
  cjdnsctl ping
  cjdnsctl routes --max-link 100000
  cjdnsctl routes --host fc12:3456:789a:bcde:f012:3456:789a:bcde
  cjdnsctl peers --max-hops 2 --short
  cjdnsctl call NodeStore_dumpTable '{"page": 0}'
  cjdnsctl conf /etc/cjdroute.conf
""",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to cjdnsctl configuration",
    )
    parser.add_argument("-a", "--address", help="Admin interface address")
    parser.add_argument("-p", "--port", type=int, help="Admin interface port")
    parser.add_argument("-P", "--password", help="Admin interface password")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cjdnsctl {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # ping command
    subparsers.add_parser("ping", help="Check that cjdroute is running")

    # cookie command
    subparsers.add_parser("cookie", help="Request a cookie")

    # routes command
    routes_parser = subparsers.add_parser("routes", help="Display the routing table")
    routes_parser.add_argument(
        "--page",
        type=int,
        default=-1,
        help="Fetch a single page (default: all pages)",
    )
    routes_parser.add_argument("--host", default="", help="Only routes to this IP")
    routes_parser.add_argument("--max-hops", type=int, default=0, help="Hop limit")
    routes_parser.add_argument("--max-link", type=int, default=0, help="Link quality limit")
    routes_parser.add_argument("--json", action="store_true", help="Print JSON")

    # peers command
    peers_parser = subparsers.add_parser("peers", help="List nodes within a hop limit")
    peers_parser.add_argument(
        "-n", "--max-hops",
        type=int,
        default=1,
        help="Hop limit, 0 for every known node",
    )
    peers_parser.add_argument(
        "--short",
        action="store_true",
        help="Show truncated addresses",
    )

    # call command
    call_parser = subparsers.add_parser("call", help="Call an admin function")
    call_parser.add_argument("function", help="Admin function name")
    call_parser.add_argument("args", nargs="?", help="Arguments as a JSON object")

    # conf command
    conf_parser = subparsers.add_parser("conf", help="Show local node identity")
    conf_parser.add_argument("path", nargs="?", type=Path, help="Path to cjdroute.conf")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = Config.load(args.config)
        if args.address:
            config.admin.address = args.address
        if args.port:
            config.admin.port = args.port
        if args.password:
            config.admin.password = args.password
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    _setup_logging(config, args.verbose)

    # Create CLI instance
    cli = AdminCtl(config)

    # Dispatch command
    if args.command == "ping":
        return cli.ping()
    elif args.command == "cookie":
        return cli.cookie()
    elif args.command == "routes":
        return cli.routes(
            page=args.page,
            host=args.host,
            max_hops=args.max_hops,
            max_link=args.max_link,
            as_json=args.json,
        )
    elif args.command == "peers":
        return cli.peers(args.max_hops, short=args.short)
    elif args.command == "call":
        return cli.call(args.function, args.args)
    elif args.command == "conf":
        return cli.conf(args.path)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
