"""Host reachability checks using the operating system ``ping``."""

from __future__ import annotations

import logging
import platform
import subprocess
import time

from .cancel import CancelToken, cancelled

logger = logging.getLogger(__name__)

# Extra time granted to the ping process beyond its own reply wait.
PING_GRACE = 1.0
# Granularity at which a running ping notices cancellation.
_POLL_SLICE = 0.05


def build_ping_command(ip: str, timeout: float, system: str | None = None) -> list[str]:
    """Return the single-echo ping command for ``ip``.

    Windows takes the wait in milliseconds. POSIX ``ping -W`` takes whole
    seconds, so sub-second timeouts are raised to one second.
    """

    system = (system or platform.system()).lower()
    if system == "windows":
        return ["ping", "-n", "1", "-w", str(int(timeout * 1000)), ip]
    return ["ping", "-c", "1", "-W", str(max(1, int(timeout))), ip]


def _ping_wait(timeout: float, system: str | None = None) -> float:
    system = (system or platform.system()).lower()
    if system == "windows":
        return timeout
    return float(max(1, int(timeout)))


def probe_reachability(
    ip: str,
    timeout: float,
    token: CancelToken | None = None,
) -> tuple[bool, float]:
    """Ping ``ip`` once and return ``(reachable, latency_seconds)``.

    Latency is the wall time of the whole ping invocation. The process is
    killed if ``token`` is cancelled or it outlives its reply wait plus a
    grace period. Failures to launch ``ping`` count as unreachable.
    """

    start = time.perf_counter()
    cmd = build_ping_command(ip, timeout)
    deadline = time.monotonic() + _ping_wait(timeout) + PING_GRACE
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
        )
    except OSError:
        logger.debug("Unable to run %s", cmd[0], exc_info=True)
        return False, time.perf_counter() - start

    returncode: int | None = None
    try:
        while returncode is None:
            if cancelled(token) or time.monotonic() >= deadline:
                break
            try:
                returncode = proc.wait(timeout=_POLL_SLICE)
            except subprocess.TimeoutExpired:
                continue
    finally:
        if returncode is None:
            proc.kill()
            proc.wait()

    return returncode == 0, time.perf_counter() - start


__all__ = ["PING_GRACE", "build_ping_command", "probe_reachability"]
