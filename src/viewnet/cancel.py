"""Cooperative cancellation with optional deadlines."""

from __future__ import annotations

import threading
import time
from typing import Any


class CancelToken:
    """Cancellation flag combined with an optional monotonic deadline.

    Tokens form a tree: a child created with :meth:`child` reports
    cancellation when it is cancelled itself, when its own deadline passes,
    or when any ancestor is cancelled. Blocking calls ask :meth:`remaining`
    for the longest wait they may perform.
    """

    def __init__(self, timeout: float | None = None, parent: "CancelToken | None" = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._parent = parent

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent is not None and self._parent.cancelled

    def remaining(self, cap: float | None = None) -> float | None:
        """Return seconds left before this token expires, at most ``cap``.

        ``None`` means no limit applies. A cancelled token returns ``0.0``.
        """

        if self.cancelled:
            return 0.0
        limits = [] if cap is None else [cap]
        if self._deadline is not None:
            limits.append(self._deadline - time.monotonic())
        if self._parent is not None:
            parent_left = self._parent.remaining()
            if parent_left is not None:
                limits.append(parent_left)
        if not limits:
            return None
        return max(0.0, min(limits))

    def child(self, timeout: float | None = None) -> "CancelToken":
        return CancelToken(timeout, parent=self)

    def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds`` and return ``True`` if cancelled meanwhile."""

        left = self.remaining(seconds)
        if left:
            self._event.wait(left)
        return self.cancelled


def cancelled(token: Any) -> bool:
    """Return ``True`` if the optional ``token`` has been cancelled.

    Accepts a :class:`CancelToken`, a ``threading.Event`` or ``None``.
    """

    if token is None:
        return False
    if isinstance(token, CancelToken):
        return token.cancelled
    return bool(token.is_set())


def time_left(token: CancelToken | None, cap: float) -> float:
    """Return the wait budget for a blocking call bounded by ``cap``."""

    if token is None:
        return cap
    left = token.remaining(cap)
    return cap if left is None else left


__all__ = ["CancelToken", "cancelled", "time_left"]
