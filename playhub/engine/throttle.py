"""
playhub.engine.throttle — Per-user action throttle
====================================================

Anti-spam guard for post/review creation and report filing: at most one
action of a given kind per user per window.  State lives in process
memory only and is lost on restart.

Thread-safe.  Route handlers run in a threadpool, so every read-compare-
write happens under one lock.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from threading import Lock

logger = logging.getLogger(__name__)


class ActionThrottle:
    """Fixed-window throttle keyed by ``(user_id, action)``.

    ``hit()`` records the action when allowed; a rejected hit leaves the
    stored timestamp untouched.
    """

    def __init__(
        self,
        window_seconds: float = 2.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = Lock()
        self._last: dict[tuple[int, str], float] = {}
        self._last_cleanup = clock()

    def hit(self, user_id: int, action: str) -> tuple[bool, float]:
        """Try to record an action.

        Returns ``(allowed, retry_after)``; ``retry_after`` is 0 when
        allowed, otherwise the seconds left in the current window.
        """
        now = self._clock()
        key = (user_id, str(action))
        with self._lock:
            self._maybe_cleanup(now)
            last = self._last.get(key)
            if last is not None and now - last < self.window_seconds:
                return False, self.window_seconds - (now - last)
            self._last[key] = now
            return True, 0.0

    def reset(self, user_id: int | None = None) -> None:
        """Clear throttle state. If user_id is None, clear all."""
        with self._lock:
            if user_id is None:
                self._last.clear()
            else:
                for key in [k for k in self._last if k[0] == user_id]:
                    del self._last[key]

    def _maybe_cleanup(self, now: float) -> None:
        """Drop expired keys once a minute so the map doesn't grow forever."""
        if now - self._last_cleanup < 60:
            return
        self._last_cleanup = now
        cutoff = now - self.window_seconds
        for key in [k for k, t in self._last.items() if t <= cutoff]:
            del self._last[key]
