"""Runtime defaults for ViewNet.

Every value can be overridden through an environment variable so that
deployments and tests can tune the scanner without touching code.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


# Concurrency bounds. Host workers scan whole hosts; port workers are created
# per host, so the total in-flight probe count is their product.
HOST_WORKERS = _env_int("VIEWNET_HOST_WORKERS", 10)
PORT_WORKERS = _env_int("VIEWNET_PORT_WORKERS", 100)
BATCH_PORT_WORKERS = _env_int("VIEWNET_BATCH_PORT_WORKERS", 20)

# Per-probe timeout in milliseconds, mirrored by the ``-timeout`` flag.
DEFAULT_TIMEOUT_MS = _env_int("VIEWNET_TIMEOUT_MS", 200)

# In batch mode each host gets ``timeout * BATCH_DEADLINE_FACTOR`` in total.
BATCH_DEADLINE_FACTOR = _env_int("VIEWNET_BATCH_DEADLINE_FACTOR", 10)

DEFAULT_PORT_START = 1
DEFAULT_PORT_END = 1024

# Vendor lookup sources and their on-disk caches.
OUI_URL = os.environ.get("VIEWNET_OUI_URL", "https://standards-oui.ieee.org/oui/oui.txt")
VENDOR_API_URL = os.environ.get("VIEWNET_VENDOR_API_URL", "https://api.macvendors.com/")
OUI_MAX_AGE_DAYS = _env_float("VIEWNET_OUI_MAX_AGE_DAYS", 30.0)
OUI_DOWNLOAD_TIMEOUT = _env_float("VIEWNET_OUI_DOWNLOAD_TIMEOUT", 30.0)
VENDOR_API_TIMEOUT = _env_float("VIEWNET_VENDOR_API_TIMEOUT", 2.0)

VENDOR_CACHE_FILE = "vendor_cache.json"
OUI_CACHE_FILE = "ieee_oui_cache.json"
OUI_TEXT_FILE = "oui.txt"

# Dashboard refresh cadence in seconds.
POLL_INTERVAL = _env_float("VIEWNET_POLL_INTERVAL", 0.2)


def cache_dir() -> Path:
    """Return the directory holding the vendor caches.

    ``VIEWNET_CACHE_DIR`` wins when set, otherwise the current working
    directory is used. The value is read on every call so a changed
    environment is honoured.
    """

    return Path(os.environ.get("VIEWNET_CACHE_DIR") or Path.cwd())


__all__ = [
    "HOST_WORKERS",
    "PORT_WORKERS",
    "BATCH_PORT_WORKERS",
    "DEFAULT_TIMEOUT_MS",
    "BATCH_DEADLINE_FACTOR",
    "DEFAULT_PORT_START",
    "DEFAULT_PORT_END",
    "OUI_URL",
    "VENDOR_API_URL",
    "OUI_MAX_AGE_DAYS",
    "OUI_DOWNLOAD_TIMEOUT",
    "VENDOR_API_TIMEOUT",
    "VENDOR_CACHE_FILE",
    "OUI_CACHE_FILE",
    "OUI_TEXT_FILE",
    "POLL_INTERVAL",
    "cache_dir",
]
