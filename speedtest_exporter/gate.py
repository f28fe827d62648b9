"""Single-flight guard for scrapes."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class GateBusyError(RuntimeError):
    pass


class ExclusivityGate:
    """Non-blocking lock allowing at most one scrape in flight.

    A caller that finds the gate held is turned away immediately instead of
    queueing behind the running speedtest.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self.try_acquire():
            raise GateBusyError("Scrape already in progress")
        try:
            yield
        finally:
            self.release()
