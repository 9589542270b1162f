"""Logging setup for the ViewNet command line and dashboard.

Log records go through the same rich :class:`~rich.console.Console` that
draws the live dashboard, so a warning printed mid-scan is placed above the
live view instead of tearing it. A rotating plain-text file can be added for
post-mortem diagnostics of long scans.
"""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

LOG_FILE_ENV = "VIEWNET_LOG_FILE"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"

# Libraries whose debug output would bury per-host scan messages under -v.
_NOISY_LOGGERS = ("urllib3", "requests")


def _file_handler(path: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=5)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(
    level: int = logging.WARNING,
    log_file: str | None = None,
    console: Console | None = None,
) -> None:
    """Route ViewNet logging to the dashboard console and optionally a file.

    ``level`` defaults to ``WARNING`` so only failed hosts and unreachable
    vendor sources show up next to the dashboard; ``-v`` passes ``DEBUG``.
    ``console`` should be the console the dashboard renders on. Host names,
    banners and vendor strings are logged verbatim, so rich markup is off.

    ``log_file`` falls back to ``VIEWNET_LOG_FILE``; an empty string
    disables file output even when the variable is set. The file records the
    worker thread name, which tells host and port workers apart.
    """
    if log_file is None:
        log_file = os.getenv(LOG_FILE_ENV)

    handlers: list[logging.Handler] = [
        RichHandler(console=console, rich_tracebacks=True, markup=False)
    ]
    if log_file:
        handlers.append(_file_handler(log_file))

    logging.basicConfig(
        level=level,
        handlers=handlers,
        format="%(message)s",
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


__all__ = ["setup_logging"]
