"""Cancellation tokens threaded through service and repository calls."""

from __future__ import annotations

import threading
import time
from typing import Optional

from .exceptions import OperationCancelledError


class CancellationToken:
    """Signals that an in-flight operation should stop.

    A token is cancelled either explicitly through :meth:`cancel` or
    implicitly once its monotonic ``deadline`` has passed. Repositories poll
    it around every storage call.
    """

    def __init__(self, deadline: Optional[float] = None) -> None:
        self._deadline = deadline
        self._event = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: Optional[float]) -> "CancellationToken":
        if seconds is None or seconds <= 0:
            return cls()
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("operation was cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise OperationCancelledError("operation deadline exceeded")


def ensure_token(token: Optional[CancellationToken]) -> CancellationToken:
    """Return ``token`` or a fresh token that never fires."""
    return token if token is not None else CancellationToken()
