"""Cancellable, time-bounded execution scope shared by every step of a scan.

A :class:`ScanScope` ends either when its timeout elapses or when ``cancel()``
is called. Blocking operations check the scope before they start and wait on it
instead of sleeping, so nothing in a scan can outlive its deadline unnoticed.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, List, Optional

from .errors import DeadlineExceededError, ScanCancelledError

logger = logging.getLogger(__name__)


class ScanScope:
    """One scan's deadline plus an explicit cancellation switch.

    Example usage:
        with ScanScope(timeout=10) as scope:
            report = run_scan(scope, path)

    Leaving the ``with`` block cancels the scope, which wakes anything still
    waiting on it.
    """

    def __init__(self, timeout: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout!r}")
        self._clock = clock
        self.timeout = float(timeout)
        self.deadline = clock() + self.timeout
        self._lock = threading.Lock()
        self._ended = threading.Event()
        self._error: Optional[ScanCancelledError] = None
        self._waiters: List[threading.Event] = []

    def __enter__(self) -> "ScanScope":
        return self

    def __exit__(self, *args) -> None:
        self.cancel("scan finished")

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        return max(0.0, self.deadline - self._clock())

    def cancel(self, reason: str = "scan cancelled") -> None:
        self._end(ScanCancelledError(reason))

    def done(self) -> bool:
        if self._ended.is_set():
            return True
        if self.remaining() <= 0:
            self._end(DeadlineExceededError(f"scan deadline of {self.timeout:g}s exceeded"))
            return True
        return False

    def error(self) -> Optional[ScanCancelledError]:
        """The error that ended the scope, or None while it is still live."""
        self.done()
        return self._error

    def check(self) -> None:
        """Raise the scope's cancellation error if it has ended."""
        if self.done():
            raise self._error

    def wait_for(self, future: Future) -> bool:
        """Block until ``future`` completes or the scope ends.

        Returns True when the future finished first. The future itself is left
        alone either way; callers decide whether to keep waiting on it.
        """
        wakeup = threading.Event()
        future.add_done_callback(lambda _future: wakeup.set())
        with self._lock:
            if self._ended.is_set():
                return future.done()
            self._waiters.append(wakeup)
        try:
            while not wakeup.is_set():
                remaining = self.remaining()
                if remaining <= 0:
                    break
                wakeup.wait(timeout=remaining)
        finally:
            with self._lock:
                if wakeup in self._waiters:
                    self._waiters.remove(wakeup)
        if future.done():
            return True
        self.done()
        return False

    def _end(self, error: ScanCancelledError) -> None:
        with self._lock:
            if self._error is not None:
                return
            self._error = error
            self._ended.set()
            waiters = list(self._waiters)
        logger.debug("Scan scope ended: %s", error)
        for waiter in waiters:
            waiter.set()
