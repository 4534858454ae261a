import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict


class SlidingWindowLimiter:
    """Allows at most ``limit`` events per key inside a rolling window."""

    def __init__(self, limit: int, window_sec: float = 60.0, clock: Callable[[], float] = time.time) -> None:
        self.limit = max(1, limit)
        self.window_sec = max(0.001, window_sec)
        self._clock = clock
        self._events: Dict[str, Deque[float]] = {}
        self._lock = Lock()

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            events = self._events.setdefault(key, deque())
            while events and now - events[0] >= self.window_sec:
                events.popleft()
            if len(events) >= self.limit:
                return False
            events.append(now)
            self._prune(now)
            return True

    def _prune(self, now: float) -> None:
        # drop keys whose whole window has elapsed so idle clients do not accumulate
        stale = [key for key, events in self._events.items() if not events or now - events[-1] >= self.window_sec]
        for key in stale:
            del self._events[key]
