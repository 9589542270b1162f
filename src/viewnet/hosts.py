"""Host enumeration and address helpers."""

from __future__ import annotations

import functools
import ipaddress
import logging
import socket
from typing import Iterable, Iterator

import psutil

from .errors import ConfigurationError
from .models import HostInfo

logger = logging.getLogger(__name__)

_PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(n) for n in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")
)


def normalize_target(target: str) -> str:
    """Return ``target`` as CIDR, treating a bare address as ``/32``."""

    target = target.strip()
    if "/" not in target:
        return f"{target}/32"
    return target


def parse_subnet(cidr: str) -> ipaddress.IPv4Network:
    """Return the IPv4 network for ``cidr`` or raise ``ConfigurationError``.

    Host bits are masked off, so ``192.168.1.77/24`` means ``192.168.1.0/24``.
    """

    try:
        network = ipaddress.ip_network(cidr.strip(), strict=False)
    except ValueError as exc:
        raise ConfigurationError(f"invalid subnet {cidr!r}: {exc}") from exc
    if not isinstance(network, ipaddress.IPv4Network):
        raise ConfigurationError(f"invalid subnet {cidr!r}: only IPv4 is supported")
    return network


def iter_subnet(cidr: str) -> Iterator[str]:
    """Yield every address of ``cidr`` in ascending order.

    Network and broadcast addresses are included.
    """

    network = parse_subnet(cidr)
    for ip in network:
        yield str(ip)


def expand_subnet(cidr: str) -> list[str]:
    """Return all addresses in ``cidr`` in ascending numeric order."""

    return list(iter_subnet(cidr))


def _is_private(ip: ipaddress.IPv4Address) -> bool:
    return any(ip in net for net in _PRIVATE_NETWORKS)


def _interface_networks() -> Iterator[tuple[str, ipaddress.IPv4Interface]]:
    """Yield ``(name, interface)`` for IPv4 addresses on up, non-loopback NICs."""

    try:
        stats = psutil.net_if_stats()
    except Exception:
        logger.debug("net_if_stats failed", exc_info=True)
        stats = {}

    for name, addrs in psutil.net_if_addrs().items():
        stat = stats.get(name)
        if stat is not None and not stat.isup:
            continue
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            netmask = addr.netmask or "255.255.255.0"
            try:
                iface = ipaddress.IPv4Interface(f"{addr.address}/{netmask}")
            except ValueError:
                continue
            if iface.ip.is_loopback:
                continue
            yield name, iface


def detect_local_subnet() -> str:
    """Return the first private IPv4 network attached to this machine.

    Interfaces that are down or loopback are skipped, as are link-local
    addresses. Raises ``ConfigurationError`` when nothing qualifies.
    """

    for name, iface in _interface_networks():
        ip = iface.ip
        if ip.is_link_local or not _is_private(ip):
            continue
        logger.debug("Using interface %s (%s)", name, iface)
        return str(iface.network)
    raise ConfigurationError("no suitable network interface found")


def is_local_address(ip: str) -> bool:
    """Return ``True`` if ``ip`` lies inside a directly attached network."""

    try:
        target = ipaddress.IPv4Address(ip)
    except ValueError:
        return False
    return any(target in iface.network for _, iface in _interface_networks())


def ip_to_int(ip: str) -> int:
    """Return ``ip`` as an integer, or 0 if it is not dotted-quad IPv4."""

    try:
        return int(ipaddress.IPv4Address(ip))
    except ValueError:
        return 0


def _compare_hosts(a: HostInfo, b: HostInfo) -> int:
    try:
        left = int(ipaddress.IPv4Address(a.ip))
        right = int(ipaddress.IPv4Address(b.ip))
    except ValueError:
        left, right = a.ip, b.ip  # type: ignore[assignment]
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def sort_hosts_by_ip(hosts: Iterable[HostInfo]) -> list[HostInfo]:
    """Return ``hosts`` ordered by numeric IPv4 address.

    Pairs where either side is not IPv4 fall back to comparing the raw
    strings. The sort is stable.
    """

    return sorted(hosts, key=functools.cmp_to_key(_compare_hosts))


__all__ = [
    "normalize_target",
    "parse_subnet",
    "iter_subnet",
    "expand_subnet",
    "detect_local_subnet",
    "is_local_address",
    "ip_to_int",
    "sort_hosts_by_ip",
]
