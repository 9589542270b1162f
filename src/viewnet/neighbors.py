"""Best-effort neighbour lookups: reverse DNS and the ARP/neighbour table."""

from __future__ import annotations

import logging
import platform
import re
import socket
import subprocess
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

from .cancel import CancelToken, time_left
from .hosts import is_local_address

logger = logging.getLogger(__name__)

DNS_TIMEOUT = 2.0
COMMAND_TIMEOUT = 2.0

_MAC_RE = re.compile(r"([0-9a-fA-F]{2}[:-]){5}[0-9a-fA-F]{2}")

# Reverse lookups block inside the resolver with no timeout of their own, so
# they run on a small shared pool and callers stop waiting after DNS_TIMEOUT.
_DNS_EXECUTOR = ThreadPoolExecutor(max_workers=8, thread_name_prefix="viewnet-dns")


def resolve_hostname(ip: str, token: CancelToken | None = None) -> str:
    """Return the reverse DNS name for ``ip`` without a trailing dot."""

    wait = time_left(token, DNS_TIMEOUT)
    if wait <= 0:
        return ""
    future = _DNS_EXECUTOR.submit(socket.gethostbyaddr, ip)
    try:
        name = future.result(timeout=wait)[0]
    except FutureTimeout:
        future.cancel()
        logger.debug("Reverse lookup for %s timed out", ip)
        return ""
    except OSError:
        return ""
    return name.rstrip(".")


def _run(cmd: list[str], timeout: float = COMMAND_TIMEOUT) -> str:
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired):
        logger.debug("%s failed", " ".join(cmd), exc_info=True)
        return ""
    return result.stdout


def _normalize_mac(value: str) -> str:
    return value.upper().replace("-", ":")


def parse_mac(output: str, ip: str, *, windows: bool = False) -> str:
    """Return the first MAC address for ``ip`` found in command ``output``.

    Linux ``ip neighbor`` lines are matched on their ``lladdr`` field; any
    other token shaped like a MAC is accepted as a fallback. On Windows only
    lines mentioning ``ip`` are considered.
    """

    for line in output.splitlines():
        if windows and ip not in line:
            continue
        fields = line.split()
        if not windows and "lladdr" in fields:
            idx = fields.index("lladdr")
            if idx + 1 < len(fields):
                return _normalize_mac(fields[idx + 1])
        for field in fields:
            if _MAC_RE.search(field):
                return _normalize_mac(field)
    return ""


def lookup_mac(ip: str, system: str | None = None) -> str:
    """Return the MAC address of ``ip`` from the neighbour table or ``""``.

    On POSIX systems ``ip neighbor`` is tried first, then ``arp -n``. When
    both come back empty and ``ip`` is on a directly attached network an
    ``arping`` is sent to populate the table before asking once more.
    """

    system = (system or platform.system()).lower()
    if system == "windows":
        return parse_mac(_run(["arp", "-a", ip]), ip, windows=True)

    output = _run(["ip", "neighbor", "show", ip])
    if not output.strip():
        output = _run(["arp", "-n", ip])
    if not output.strip() and is_local_address(ip):
        _run(["arping", "-c", "1", "-w", "1", ip])
        output = _run(["ip", "neighbor", "show", ip])
    return parse_mac(output, ip)


__all__ = ["DNS_TIMEOUT", "resolve_hostname", "parse_mac", "lookup_mac"]
