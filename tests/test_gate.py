"""
Unit tests for the gate module.

Tests:
- Non-blocking acquisition and release
- hold() context manager on success and error paths
- Concurrent callers are rejected immediately
"""

import threading
import time

import pytest

from speedtest_exporter.gate import ExclusivityGate, GateBusyError


class TestExclusivityGate:
    """Tests for ExclusivityGate."""

    def test_acquire_and_release(self) -> None:
        """Test a single acquisition succeeds and can be released."""
        gate = ExclusivityGate()

        assert gate.try_acquire() is True
        assert gate.busy is True
        gate.release()
        assert gate.busy is False

    def test_second_acquire_rejected(self) -> None:
        """Test a held gate refuses another acquisition."""
        gate = ExclusivityGate()
        assert gate.try_acquire()

        assert gate.try_acquire() is False
        gate.release()
        assert gate.try_acquire() is True

    def test_hold_releases_on_error(self) -> None:
        """Test hold() releases the gate when the guarded block raises."""
        gate = ExclusivityGate()

        with pytest.raises(ValueError):
            with gate.hold():
                raise ValueError("scrape exploded")

        assert gate.busy is False

    def test_hold_busy(self) -> None:
        """Test hold() raises instead of waiting while the gate is held."""
        gate = ExclusivityGate()

        with gate.hold():
            with pytest.raises(GateBusyError):
                with gate.hold():
                    pass
            assert gate.busy is True
        assert gate.busy is False

    def test_concurrent_caller_rejected_immediately(self) -> None:
        """Test a second thread is turned away without blocking on the first."""
        gate = ExclusivityGate()
        entered = threading.Event()
        finish = threading.Event()

        def long_scrape() -> None:
            with gate.hold():
                entered.set()
                finish.wait(timeout=5)

        worker = threading.Thread(target=long_scrape)
        worker.start()
        try:
            assert entered.wait(timeout=5)
            started = time.monotonic()
            with pytest.raises(GateBusyError):
                with gate.hold():
                    pass
            assert time.monotonic() - started < 1.0
        finally:
            finish.set()
            worker.join(timeout=5)

        assert gate.busy is False
