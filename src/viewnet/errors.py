"""Exception types raised by ViewNet."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ServiceInfo


class ViewNetError(Exception):
    """Base class for all ViewNet errors."""


class ConfigurationError(ViewNetError):
    """Invalid user input such as a malformed subnet or port list.

    These are fatal: the CLI reports them and exits with a non-zero status.
    """


class ProbeError(ViewNetError):
    """A port probe could not connect.

    ``service`` holds the closed-port record built for the failed probe so
    callers can still inspect the measured latency.
    """

    def __init__(self, message: str, service: "ServiceInfo") -> None:
        super().__init__(message)
        self.service = service


__all__ = ["ViewNetError", "ConfigurationError", "ProbeError"]
