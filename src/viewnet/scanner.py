"""Concurrent subnet scanning.

A scan fans out over hosts with one bounded thread pool and, for every
reachable host, over ports with a second per-host pool. The total number of
in-flight probes is therefore at most ``host_workers * port_workers``.

Two modes share the per-host logic in :meth:`Scanner.scan_host`:

* :meth:`Scanner.scan` blocks and returns every probed host, reachable or
  not. Each host has a hard time budget of ``timeout * 10``.
* :meth:`Scanner.start_scan` runs in the background and publishes progress
  and reachable hosts into a :class:`~viewnet.state.ScanState`.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Optional, Tuple

from . import config
from .cancel import CancelToken, cancelled
from .errors import ConfigurationError, ProbeError
from .hosts import expand_subnet
from .models import HostInfo, ScanPhase, ServiceInfo
from .neighbors import lookup_mac, resolve_hostname
from .probe import probe_port
from .reachability import probe_reachability
from .state import ScanState
from .vendor import VendorResolver

logger = logging.getLogger(__name__)

Pinger = Callable[[str, float, Optional[CancelToken]], Tuple[bool, float]]
Prober = Callable[[str, int, float, Optional[CancelToken]], ServiceInfo]
HostnameLookup = Callable[[str, Optional[CancelToken]], str]
MacLookup = Callable[[str], str]


class Scanner:
    """Scan subnets using two nested bounded worker pools.

    The network-facing seams (``pinger``, ``prober``, ``hostname_lookup``
    and ``mac_lookup``) default to the real implementations and can be
    replaced, which is how the test-suite scans without touching the
    network.
    """

    def __init__(
        self,
        resolver: VendorResolver | None = None,
        *,
        host_workers: int = config.HOST_WORKERS,
        port_workers: int = config.PORT_WORKERS,
        pinger: Pinger = probe_reachability,
        prober: Prober = probe_port,
        hostname_lookup: HostnameLookup = resolve_hostname,
        mac_lookup: MacLookup = lookup_mac,
    ) -> None:
        self.resolver = resolver if resolver is not None else VendorResolver()
        self.host_workers = max(1, host_workers)
        self.port_workers = max(1, port_workers)
        self.pinger = pinger
        self.prober = prober
        self.hostname_lookup = hostname_lookup
        self.mac_lookup = mac_lookup
        self._lock = threading.Lock()
        self._token: CancelToken | None = None

    # -- per host -----------------------------------------------------------
    def _probe_into(
        self,
        host: HostInfo,
        port: int,
        timeout: float,
        token: CancelToken | None,
    ) -> None:
        if cancelled(token):
            return
        try:
            service = self.prober(host.ip, port, timeout, token)
        except ProbeError:
            return
        if service.is_open:
            host.add_service(service)

    def scan_host(
        self,
        ip: str,
        ports: Iterable[int],
        timeout: float,
        *,
        discovery_only: bool = False,
        port_workers: int | None = None,
        token: CancelToken | None = None,
    ) -> HostInfo:
        """Scan a single host and return its finalized :class:`HostInfo`.

        Unreachable hosts are returned straight after the ping. Hostname and
        MAC lookups are best effort. With ``discovery_only`` no ports are
        probed.
        """

        host = HostInfo(ip=ip)
        reachable, latency = self.pinger(ip, timeout, token)
        host.is_reachable = reachable
        host.response_time = latency
        if not reachable:
            return host

        host.hostname = self.hostname_lookup(ip, token)
        host.mac = self.mac_lookup(ip)
        if host.mac:
            host.vendor = self.resolver.resolve(host.mac, token)

        port_list = list(ports)
        if discovery_only or not port_list:
            return host.finalize()

        workers = max(1, min(port_workers or self.port_workers, len(port_list)))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix=f"viewnet-port-{ip}"
        ) as executor:
            futures = [
                executor.submit(self._probe_into, host, port, timeout, token)
                for port in port_list
            ]
            for future in as_completed(futures):
                future.result()
        logger.debug("%s: %d open ports", ip, len(host.services))
        return host.finalize()

    # -- batch --------------------------------------------------------------
    def scan(
        self,
        subnet: str,
        ports: Iterable[int],
        timeout: float,
        *,
        discovery_only: bool = False,
        port_workers: int = config.BATCH_PORT_WORKERS,
        token: CancelToken | None = None,
    ) -> list[HostInfo]:
        """Scan ``subnet`` and return every probed host in completion order.

        A host whose scan raises is logged and returned as unreachable.

        Raises ``ConfigurationError`` for an invalid ``subnet``. Callers sort
        the result themselves, typically with
        :func:`viewnet.hosts.sort_hosts_by_ip`.
        """

        ips = expand_subnet(subnet)
        port_list = list(ports)
        token = token or CancelToken()
        budget = timeout * config.BATCH_DEADLINE_FACTOR
        logger.info("Scanning %d hosts in %s", len(ips), subnet)

        def task(ip: str) -> HostInfo:
            try:
                return self.scan_host(
                    ip,
                    port_list,
                    timeout,
                    discovery_only=discovery_only,
                    port_workers=port_workers,
                    token=token.child(budget),
                )
            except Exception:
                logger.exception("Scanning %s failed", ip)
                return HostInfo(ip=ip)

        results: list[HostInfo] = []
        with ThreadPoolExecutor(
            max_workers=self.host_workers, thread_name_prefix="viewnet-host"
        ) as executor:
            futures = [executor.submit(task, ip) for ip in ips]
            for future in as_completed(futures):
                results.append(future.result())
        return results

    # -- continuous ---------------------------------------------------------
    def _new_token(self) -> CancelToken:
        token = CancelToken()
        with self._lock:
            previous, self._token = self._token, token
        if previous is not None:
            previous.cancel()
        return token

    def cancel(self) -> None:
        """Cancel the scan currently in progress, if any."""
        with self._lock:
            token = self._token
        if token is not None:
            token.cancel()

    def _scan_into_state(
        self,
        state: ScanState,
        generation: int,
        ip: str,
        ports: list[int],
        timeout: float,
        discovery_only: bool,
        token: CancelToken,
    ) -> None:
        if token.cancelled:
            return
        state.set_current_host(ip, generation)
        try:
            host = self.scan_host(
                ip, ports, timeout, discovery_only=discovery_only, token=token
            )
        except Exception:
            logger.exception("Scanning %s failed", ip)
            host = HostInfo(ip=ip)
        state.record_host(host, generation)

    def _run_continuous(
        self,
        state: ScanState,
        generation: int,
        subnet: str,
        ports: list[int],
        timeout: float,
        discovery_only: bool,
        token: CancelToken,
    ) -> None:
        try:
            try:
                ips = expand_subnet(subnet)
            except ConfigurationError as exc:
                logger.error("Cannot scan %s: %s", subnet, exc)
                return
            state.set_total(len(ips), generation)
            state.set_phase(ScanPhase.SCANNING, generation)
            with ThreadPoolExecutor(
                max_workers=self.host_workers, thread_name_prefix="viewnet-host"
            ) as executor:
                for ip in ips:
                    executor.submit(
                        self._scan_into_state,
                        state,
                        generation,
                        ip,
                        ports,
                        timeout,
                        discovery_only,
                        token,
                    )
        finally:
            state.finish(generation)

    def start_scan(
        self,
        state: ScanState,
        subnet: str,
        ports: Iterable[int],
        timeout: float,
        *,
        discovery_only: bool = False,
    ) -> threading.Thread:
        """Start a background scan that reports into ``state``.

        Any scan already running on this scanner is cancelled first and
        ``state`` is reset before this returns, so pollers never see a mix
        of old and new results. Returns the (daemon) driver thread.
        """

        token = self._new_token()
        generation = state.reset()
        thread = threading.Thread(
            target=self._run_continuous,
            args=(state, generation, subnet, list(ports), timeout, discovery_only, token),
            name="viewnet-scan",
            daemon=True,
        )
        thread.start()
        return thread


__all__ = ["Scanner"]
