"""CSV export of scan results."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable, TextIO

from .models import HostInfo, ServiceInfo

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "IP Address",
    "MAC Address",
    "Vendor",
    "Hostname",
    "Is Reachable",
    "Response Time (ms)",
    "Open Ports",
    "Services",
]


def format_service(service: ServiceInfo) -> str:
    """Return ``"<port>/<service>"`` with `` (<version>)`` when known."""
    detail = f"{service.port}/{service.service}"
    if service.version:
        detail += f" ({service.version})"
    return detail


def host_row(host: HostInfo) -> list[str]:
    return [
        host.ip,
        host.mac,
        host.vendor,
        host.hostname,
        "true" if host.is_reachable else "false",
        f"{host.response_time * 1000:.2f}",
        ";".join(str(s.port) for s in host.services),
        ";".join(format_service(s) for s in host.services),
    ]


def write_csv(stream: TextIO, hosts: Iterable[HostInfo]) -> int:
    """Write the header and one row per host to ``stream``.

    Returns the number of host rows written. Hosts are written in the order
    given; sort them first if IP order is wanted.
    """

    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    count = 0
    for host in hosts:
        writer.writerow(host_row(host))
        count += 1
    return count


def export_csv(path: str | Path, hosts: Iterable[HostInfo]) -> int:
    """Write ``hosts`` to the CSV file at ``path``, replacing it."""
    with open(path, "w", newline="", encoding="utf-8") as fh:
        count = write_csv(fh, hosts)
    logger.info("Wrote %d hosts to %s", count, path)
    return count


__all__ = ["CSV_HEADER", "format_service", "host_row", "write_csv", "export_csv"]
