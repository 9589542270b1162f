"""Command line entry point for ViewNet."""

from __future__ import annotations

import argparse
import logging
import os
import time

from rich.console import Console
from rich.text import Text

from . import config
from .dashboard import Dashboard
from .errors import ConfigurationError
from .export import export_csv
from .hosts import detect_local_subnet, normalize_target, parse_subnet, sort_hosts_by_ip
from .ports import COMMON_PORTS, parse_port_list, resolve_ports
from .scanner import Scanner
from .state import ScanState
from .utils.logging_config import setup_logging
from .vendor import VendorResolver

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="viewnet",
        description="Scan a subnet for live hosts, open ports and hardware vendors",
        allow_abbrev=False,
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="Subnet in CIDR notation or a single address (treated as /32)",
    )
    parser.add_argument(
        "-subnet",
        "--subnet",
        default="",
        help="CIDR to scan (auto-detects the local subnet if empty)",
    )
    parser.add_argument(
        "-start", "--start", type=int, default=None, help="Start port (default 1)"
    )
    parser.add_argument(
        "-end", "--end", type=int, default=None, help="End port (default 1024)"
    )
    parser.add_argument(
        "-p",
        "--ports",
        dest="ports",
        default="",
        help="Comma separated list of ports (e.g. 22,80,443)",
    )
    parser.add_argument(
        "-ips",
        "--ips",
        action="store_true",
        help="Only discover active hosts, skip port scanning",
    )
    parser.add_argument(
        "-timeout",
        "--timeout",
        type=int,
        default=config.DEFAULT_TIMEOUT_MS,
        help="Timeout per probe in milliseconds",
    )
    parser.add_argument(
        "-focused",
        "--focused",
        action="store_true",
        help="Search only IP addresses and vendors",
    )
    parser.add_argument(
        "-s",
        "--search",
        dest="search",
        default="",
        help="Initial search term for the dashboard",
    )
    parser.add_argument(
        "-csv",
        "--csv",
        default="",
        metavar="FILE",
        help="Run without the dashboard and write results to FILE",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--log-file",
        default=os.getenv("VIEWNET_LOG_FILE"),
        help="Also write logs to this file",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def resolve_subnet(args: argparse.Namespace) -> str:
    """Return the subnet to scan from ``args`` or the local interfaces."""
    if args.target:
        subnet = normalize_target(args.target)
    elif args.subnet:
        subnet = args.subnet
    else:
        subnet = detect_local_subnet()
    return str(parse_subnet(subnet))


def select_ports(args: argparse.Namespace) -> list[int]:
    """Return the ports to probe; empty when only discovering hosts.

    An explicit ``-p`` list wins, then an explicit ``-start``/``-end``
    range. With neither the common-port table is used.
    """
    custom = parse_port_list(args.ports)
    if args.ips:
        return []
    if not custom and args.start is None and args.end is None:
        return list(COMMON_PORTS)
    start = config.DEFAULT_PORT_START if args.start is None else args.start
    end = config.DEFAULT_PORT_END if args.end is None else args.end
    return resolve_ports(custom, start, end)


def run_batch(
    console: Console,
    scanner: Scanner,
    subnet: str,
    ports: list[int],
    timeout: float,
    *,
    discovery_only: bool,
    csv_path: str,
) -> int:
    """Scan once, export the results to ``csv_path`` and print a summary."""

    mode = "IP discovery only" if discovery_only else f"{len(ports)} ports"
    console.print(
        Text(f"ViewNet | Target {subnet} | {mode} | Timeout {timeout * 1000:.0f}ms")
    )
    console.print(Text(f"Output: {csv_path}"))

    start = time.perf_counter()
    with console.status(f"Scanning {subnet}..."):
        hosts = scanner.scan(subnet, ports, timeout, discovery_only=discovery_only)
    duration = time.perf_counter() - start

    hosts = sort_hosts_by_ip(hosts)
    export_csv(csv_path, hosts)

    active = sum(1 for h in hosts if h.is_reachable)
    open_ports = sum(len(h.services) for h in hosts)
    console.print(f"[green]Scan completed in {duration:.2f}s[/]")
    console.print(f"Active hosts: {active}/{len(hosts)}")
    console.print(f"Open ports found: {open_ports}")
    console.print(Text(f"Results exported to {csv_path}"))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    console = Console()
    setup_logging(
        logging.DEBUG if args.verbose else logging.WARNING,
        args.log_file,
        console=console,
    )

    try:
        if args.timeout <= 0:
            raise ConfigurationError("timeout must be a positive number of milliseconds")
        subnet = resolve_subnet(args)
        ports = select_ports(args)
    except ConfigurationError as exc:
        console.print(Text(f"Error: {exc}", style="bold red"))
        return 1

    timeout = args.timeout / 1000.0
    resolver = VendorResolver()
    scanner = Scanner(resolver)
    try:
        if args.csv:
            return run_batch(
                console,
                scanner,
                subnet,
                ports,
                timeout,
                discovery_only=args.ips,
                csv_path=args.csv,
            )
        Dashboard(
            scanner,
            ScanState(),
            subnet,
            ports,
            timeout,
            discovery_only=args.ips,
            focused=args.focused,
            search=args.search,
            console=console,
        ).run()
        return 0
    except OSError as exc:
        console.print(Text(f"Error: {exc}", style="bold red"))
        return 1
    finally:
        resolver.flush(timeout=2.0)


__all__ = ["build_parser", "parse_args", "resolve_subnet", "select_ports", "run_batch", "main"]
