"""Proactive refresh scheduling.

:class:`RefreshScheduler` owns a single timer slot. It is armed after every
successful grant to fire :data:`DEFAULT_SAFETY_MARGIN` seconds before the
token expires, and its callback re-enters the token manager's refresh
path. Timers come from a :class:`TimerService`, which tests replace with a
deterministic fake.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_MARGIN = 0.3
"""Seconds subtracted from a token's expiry when scheduling its refresh."""


def compute_refresh_delay(expires_at: float, now: float, safety_margin: float) -> float:
    """Seconds from *now* until a refresh is due, never negative."""
    return max(0.0, (expires_at - safety_margin) - now)


class TimerHandle(ABC):
    """A pending one-shot timer."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the timer from firing if it has not fired yet."""
        ...


class TimerService(ABC):
    """Factory for one-shot timers."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run *callback* once after *delay* seconds on a background thread."""
        ...


class _ThreadingTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingTimerService(TimerService):
    """Timer service backed by daemon :class:`threading.Timer` threads."""

    def __init__(self, thread_name: str = "kcadmin-token-refresh") -> None:
        self._thread_name = thread_name

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.name = self._thread_name
        timer.daemon = True
        timer.start()
        return _ThreadingTimerHandle(timer)


class RefreshScheduler:
    """Single-slot scheduler that fires a refresh callback while alive.

    Arming a new timer cancels the pending one, so at most one refresh
    runs per armed cycle. The liveness flag is checked when the timer
    fires; after :meth:`shutdown` a late-firing timer does nothing.

    Args:
        callback: Invoked on the timer thread when a refresh is due.
        timer_service: Source of one-shot timers. Defaults to
            :class:`ThreadingTimerService`.
        safety_margin: Seconds before expiry at which to fire.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        timer_service: Optional[TimerService] = None,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
    ) -> None:
        self._callback = callback
        self._timer_service = timer_service or ThreadingTimerService()
        self.safety_margin = safety_margin
        self._alive = threading.Event()
        self._alive.set()
        self._pending: Optional[TimerHandle] = None
        self._lock = threading.Lock()

    @property
    def alive(self) -> bool:
        return self._alive.is_set()

    def schedule_for_expiry(self, expires_at: float, now: float) -> float:
        """Arm the timer for a token expiring at *expires_at*; return the delay used."""
        delay = compute_refresh_delay(expires_at, now, self.safety_margin)
        self.schedule_refresh_at(delay)
        return delay

    def schedule_refresh_at(self, delay: float) -> None:
        """Arm the timer to fire after *delay* seconds (negative means now)."""
        delay = max(0.0, delay)
        with self._lock:
            if not self._alive.is_set():
                logger.debug("Scheduler is shut down, not scheduling refresh")
                return
            if self._pending is not None:
                self._pending.cancel()
            self._pending = self._timer_service.call_later(delay, self._fire)
        logger.debug("Refresh scheduled in %.3f s", delay)

    def shutdown(self) -> None:
        """Disarm permanently. Safe to call more than once."""
        with self._lock:
            self._alive.clear()
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def _fire(self) -> None:
        if not self._alive.is_set():
            logger.debug("Refresh timer fired after shutdown, ignoring")
            return
        self._callback()
