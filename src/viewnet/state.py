"""Shared, lock-guarded state of a continuous scan."""

from __future__ import annotations

import logging
import threading
import time

from .hosts import ip_to_int
from .models import HostInfo, ScanPhase, ScanProgress

logger = logging.getLogger(__name__)


class ScanState:
    """Progress counters and results written by scan workers.

    Writers are the host workers of :meth:`viewnet.scanner.Scanner.start_scan`;
    readers are the dashboard and anything else polling for progress. A
    single lock guards every field and all queries return copies, so they
    are safe to call from any thread at any rate.

    :meth:`reset` starts a new generation. Writers may pass the generation
    they were started under; writes from an older generation are dropped so
    a cancelled scan cannot leak into its replacement.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._generation = 0
        self._scanning = False
        self._phase = ScanPhase.IDLE
        self._current_host = ""
        self._hosts_scanned = 0
        self._total_hosts = 0
        self._active_hosts = 0
        self._open_ports = 0
        self._start_time = 0.0
        self._end_time: float | None = None
        self._results: list[HostInfo] = []

    def _stale(self, generation: int | None) -> bool:
        return generation is not None and generation != self._generation

    # -- writers ------------------------------------------------------------
    def reset(self) -> int:
        """Clear results and counters, mark a scan as started.

        Returns the new generation number.
        """
        with self._lock:
            self._generation += 1
            self._scanning = True
            self._phase = ScanPhase.ENUMERATING
            self._current_host = ""
            self._hosts_scanned = 0
            self._total_hosts = 0
            self._active_hosts = 0
            self._open_ports = 0
            self._start_time = time.time()
            self._end_time = None
            self._results = []
            return self._generation

    def set_total(self, total: int, generation: int | None = None) -> None:
        with self._lock:
            if not self._stale(generation):
                self._total_hosts = total

    def set_phase(self, phase: ScanPhase, generation: int | None = None) -> None:
        with self._lock:
            if not self._stale(generation):
                self._phase = phase

    def set_current_host(self, ip: str, generation: int | None = None) -> None:
        with self._lock:
            if not self._stale(generation):
                self._current_host = ip

    def record_host(self, host: HostInfo, generation: int | None = None) -> None:
        """Count a finished host and keep it if it answered.

        Kept results stay ordered by numeric IP.
        """

        snapshot = host.copy() if host.is_reachable else None
        with self._lock:
            if self._stale(generation):
                return
            self._hosts_scanned += 1
            if snapshot is None:
                return
            self._active_hosts += 1
            self._open_ports += len(snapshot.services)
            self._results.append(snapshot)
            self._results.sort(key=lambda h: ip_to_int(h.ip))

    def finish(self, generation: int | None = None) -> None:
        """Mark the scan complete."""
        with self._lock:
            if self._stale(generation):
                return
            self._scanning = False
            self._phase = ScanPhase.COMPLETE
            self._current_host = ""
            self._end_time = time.time()
        logger.debug("Scan finished")

    # -- queries ------------------------------------------------------------
    def get_progress(self) -> ScanProgress:
        with self._lock:
            return ScanProgress(
                current_host=self._current_host,
                hosts_scanned=self._hosts_scanned,
                total_hosts=self._total_hosts,
                active_hosts=self._active_hosts,
                open_ports=self._open_ports,
                start_time=self._start_time,
                end_time=self._end_time,
                phase=self._phase,
            )

    def get_results(self) -> list[HostInfo]:
        with self._lock:
            return [h.copy() for h in self._results]

    def is_complete(self) -> bool:
        with self._lock:
            return not self._scanning

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation


__all__ = ["ScanState"]
