"""Data records produced by a scan."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum


class ScanPhase(Enum):
    """Lifecycle of a continuous scan."""

    IDLE = "idle"
    ENUMERATING = "enumerating"
    SCANNING = "scanning"
    COMPLETE = "complete"


@dataclass
class ServiceInfo:
    """A probed TCP port on one host.

    ``response_time`` is measured in seconds. ``banner`` is already cleaned
    and truncated by :func:`viewnet.probe.clean_banner`.
    """

    port: int
    service: str
    protocol: str = "TCP"
    version: str = ""
    banner: str = ""
    is_open: bool = False
    response_time: float = 0.0


@dataclass
class HostInfo:
    """Everything learned about a single address.

    The worker that creates a host owns it. Port sub-workers only touch it
    through :meth:`add_service`, which is serialised by a per-host lock.
    Once :meth:`finalize` has run the record is handed off and must not be
    mutated again.
    """

    ip: str
    mac: str = ""
    vendor: str = ""
    hostname: str = ""
    is_reachable: bool = False
    response_time: float = 0.0
    services: list[ServiceInfo] = field(default_factory=list)
    _lock: threading.Lock = field(
        init=False, default_factory=threading.Lock, repr=False, compare=False
    )

    def add_service(self, service: ServiceInfo) -> None:
        with self._lock:
            self.services.append(service)

    def finalize(self) -> "HostInfo":
        """Sort services by port and return ``self``."""
        with self._lock:
            self.services.sort(key=lambda s: s.port)
        return self

    def copy(self) -> "HostInfo":
        """Return an independent snapshot of this host."""
        with self._lock:
            services = [replace(s) for s in self.services]
        return HostInfo(
            ip=self.ip,
            mac=self.mac,
            vendor=self.vendor,
            hostname=self.hostname,
            is_reachable=self.is_reachable,
            response_time=self.response_time,
            services=services,
        )

    @property
    def open_ports(self) -> list[int]:
        return [s.port for s in self.services]


@dataclass(frozen=True)
class ScanProgress:
    """Point-in-time counters for a running or finished scan."""

    current_host: str = ""
    hosts_scanned: int = 0
    total_hosts: int = 0
    active_hosts: int = 0
    open_ports: int = 0
    start_time: float = 0.0
    end_time: float | None = None
    phase: ScanPhase = ScanPhase.IDLE

    @property
    def fraction(self) -> float:
        if self.total_hosts <= 0:
            return 0.0
        return min(1.0, max(0.0, self.hosts_scanned / self.total_hosts))

    @property
    def elapsed(self) -> float:
        """Seconds since the scan started, frozen once it has ended."""
        if not self.start_time:
            return 0.0
        end = self.end_time if self.end_time is not None else time.time()
        return max(0.0, end - self.start_time)


__all__ = ["ScanPhase", "ServiceInfo", "HostInfo", "ScanProgress"]
