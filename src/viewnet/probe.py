"""Single TCP port probes with banner grabbing and version inference."""

from __future__ import annotations

import logging
import re
import socket
import time

from .cancel import CancelToken, time_left
from .errors import ProbeError
from .models import ServiceInfo
from .ports import SERVICE_NAMES

logger = logging.getLogger(__name__)

BANNER_READ_SIZE = 1024
BANNER_MAX_LENGTH = 100

# Ports that stay silent until spoken to get a minimal HTTP request.
_HTTP_PROBE_PORTS = {80, 8080}
_HTTP_PROBE = b"GET / HTTP/1.1\r\nHost: \r\n\r\n"

_PRINTABLE_RE = re.compile(r"[ -~]+")

_VERSION_PATTERNS: dict[str, re.Pattern[str]] = {
    "HTTP": re.compile(r"(Apache|nginx|IIS)/([0-9.]+)", re.IGNORECASE),
    "SSH": re.compile(r"OpenSSH[_\s]([0-9.]+)", re.IGNORECASE),
    "FTP": re.compile(r"(FileZilla|vsftpd|ProFTPD)\s+([0-9.]+)", re.IGNORECASE),
    "SMTP": re.compile(r"(Postfix|Sendmail|Exchange)\s+([0-9.]+)", re.IGNORECASE),
}
_GENERIC_VERSION_RE = re.compile(r"[0-9]+\.[0-9]+(?:\.[0-9]+)?")


def service_name(port: int) -> str:
    """Return the well-known service name for ``port`` or ``"Unknown"``."""
    return SERVICE_NAMES.get(port, "Unknown")


def clean_banner(data: bytes | str) -> str:
    """Return a display-safe banner from raw socket ``data``.

    Surrounding whitespace is trimmed, runs of printable ASCII are joined
    with single spaces and anything longer than 100 characters is cut and
    suffixed with ``...``.
    """

    if isinstance(data, bytes):
        data = data.decode("latin-1")
    banner = " ".join(_PRINTABLE_RE.findall(data.strip()))
    if len(banner) > BANNER_MAX_LENGTH:
        banner = banner[:BANNER_MAX_LENGTH] + "..."
    return banner


def extract_version(banner: str, service: str) -> str:
    """Return a product/version string inferred from ``banner``.

    Known services use a product pattern and yield ``"<product> <version>"``.
    Otherwise the first dotted version number is returned, or ``""``.
    """

    if not banner:
        return ""
    pattern = _VERSION_PATTERNS.get(service)
    if pattern is not None:
        match = pattern.search(banner)
        if match is not None and len(match.groups()) >= 2:
            return f"{match.group(1)} {match.group(2)}"
    match = _GENERIC_VERSION_RE.search(banner)
    return match.group(0) if match else ""


def grab_banner(sock: socket.socket, port: int, timeout: float) -> str:
    """Read an initial banner from the connected ``sock``.

    HTTP ports get a bare ``GET /`` first; everything else is read
    passively. Returns ``""`` when nothing arrives within ``timeout``.
    """

    if timeout <= 0:
        return ""
    try:
        sock.settimeout(timeout)
        if port in _HTTP_PROBE_PORTS:
            sock.sendall(_HTTP_PROBE)
        data = sock.recv(BANNER_READ_SIZE)
    except OSError:
        return ""
    if not data:
        return ""
    return clean_banner(data)


def probe_port(
    address: str,
    port: int,
    timeout: float,
    token: CancelToken | None = None,
) -> ServiceInfo:
    """Connect to ``address:port`` and describe the service found there.

    ``timeout`` bounds both the connect and the banner read; ``token`` may
    shorten either. Raises :class:`ProbeError` carrying a closed
    :class:`ServiceInfo` when the port cannot be reached.
    """

    name = service_name(port)
    start = time.perf_counter()
    wait = time_left(token, timeout)
    if wait <= 0:
        raise ProbeError(
            f"{address}:{port}: cancelled",
            ServiceInfo(port=port, service=name, response_time=0.0),
        )

    try:
        sock = socket.create_connection((address, port), timeout=wait)
    except OSError as exc:
        elapsed = time.perf_counter() - start
        raise ProbeError(
            f"{address}:{port}: {exc}",
            ServiceInfo(port=port, service=name, response_time=elapsed),
        ) from exc
    elapsed = time.perf_counter() - start

    with sock:
        banner = grab_banner(sock, port, time_left(token, timeout))

    return ServiceInfo(
        port=port,
        service=name,
        version=extract_version(banner, name),
        banner=banner,
        is_open=True,
        response_time=elapsed,
    )


__all__ = [
    "BANNER_READ_SIZE",
    "BANNER_MAX_LENGTH",
    "service_name",
    "clean_banner",
    "extract_version",
    "grab_banner",
    "probe_port",
]
