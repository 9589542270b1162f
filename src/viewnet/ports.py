"""Port selection: explicit lists, ranges and the well-known service table."""

from __future__ import annotations

import re

from .errors import ConfigurationError

# Well-known TCP services probed when no explicit port selection is given.
SERVICE_NAMES: dict[int, str] = {
    21: "FTP",
    22: "SSH",
    23: "Telnet",
    25: "SMTP",
    53: "DNS",
    80: "HTTP",
    110: "POP3",
    143: "IMAP",
    443: "HTTPS",
    993: "IMAPS",
    995: "POP3S",
    1433: "MSSQL",
    1521: "Oracle",
    3306: "MySQL",
    3389: "RDP",
    5432: "PostgreSQL",
    5900: "VNC",
    8080: "HTTP-Alt",
    8443: "HTTPS-Alt",
}

COMMON_PORTS: list[int] = sorted(SERVICE_NAMES)

_INT_RE = re.compile(r"^[+-]?\d+$")


def parse_port_list(text: str) -> list[int]:
    """Return the ports in the comma separated ``text``.

    Whitespace around entries is ignored and empty entries are skipped, so
    ``"22, 80,,443"`` gives ``[22, 80, 443]``. Order and duplicates are kept
    as written. An empty ``text`` returns an empty list.

    Raises ``ConfigurationError`` for non-numeric entries or ports outside
    1-65535.
    """

    ports: list[int] = []
    if not text:
        return ports
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if not _INT_RE.match(part):
            raise ConfigurationError(f"invalid port '{part}'")
        port = int(part)
        if not 1 <= port <= 65535:
            raise ConfigurationError(f"port {port} out of range (1-65535)")
        ports.append(port)
    return ports


def port_range(start: int, end: int) -> list[int]:
    """Return the inclusive range ``start..end``.

    An inverted range yields no ports.
    """

    if not (1 <= start <= 65535 and 1 <= end <= 65535):
        raise ConfigurationError(f"port range {start}-{end} out of range (1-65535)")
    return list(range(start, end + 1))


def resolve_ports(custom: list[int] | None, start: int, end: int) -> list[int]:
    """Return ``custom`` when non-empty, else ``port_range(start, end)``."""

    if custom:
        return list(custom)
    return port_range(start, end)


__all__ = [
    "SERVICE_NAMES",
    "COMMON_PORTS",
    "parse_port_list",
    "port_range",
    "resolve_ports",
]
