"""In-memory fixed window rate limiting keyed by client address."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
import time
from typing import Callable, Dict


@dataclass
class _Window:
    started_at: float
    count: int


class RateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each key."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = Lock()

    def hit(self, key: str) -> float | None:
        """Record a request for *key*.

        Returns ``None`` when the request is allowed, otherwise the number of
        seconds until the current window resets.
        """

        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                self._windows[key] = _Window(started_at=now, count=1)
                self._prune(now)
                return None

            if window.count >= self.max_requests:
                return max(self.window_seconds - (now - window.started_at), 0.0)

            window.count += 1
            return None

    def _prune(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            self._windows.pop(key, None)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


__all__ = ["RateLimiter"]
