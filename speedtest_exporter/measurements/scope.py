"""Cooperative cancellation for a single scrape."""

from __future__ import annotations

import threading
import time
from typing import Optional

from .errors import CancellationError


class ScrapeScope:
    """Cancellation token with an optional deadline.

    Collaborators call :meth:`check` between blocking steps and bound their
    own timeouts with :meth:`bound`. Code that can only poll an event (the
    speedtest-cli transfer threads) is handed :attr:`shutdown_event`, which
    is set on :meth:`cancel` and again by a timer once the deadline passes.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._timer: Optional[threading.Timer] = None
        if timeout is not None:
            self._timer = threading.Timer(max(0.0, timeout), self._event.set)
            self._timer.daemon = True
            self._timer.start()

    def __enter__(self) -> "ScrapeScope":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def shutdown_event(self) -> threading.Event:
        return self._event

    def cancel(self) -> None:
        self._event.set()

    def close(self) -> None:
        """Stop the deadline timer; the scope keeps its cancellation state."""
        if self._timer is not None:
            self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def bound(self, timeout: float) -> float:
        """Clamp a network timeout to the remaining budget.

        Raises CancellationError once the budget is spent, since socket
        timeouts must be positive.
        """
        self.check()
        remaining = self.remaining()
        if remaining is None:
            return timeout
        if remaining <= 0:
            raise CancellationError()
        return min(timeout, remaining)

    def check(self, stage: Optional[str] = None, target_id: Optional[str] = None) -> None:
        if self.cancelled:
            raise CancellationError(stage, target_id)
