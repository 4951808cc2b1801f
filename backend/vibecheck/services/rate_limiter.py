# vibecheck/services/rate_limiter.py
# Per-key rate limiter (sliding window) with in-memory storage

from collections import deque
from typing import Callable, Deque, Dict
import time

from ..errors import RateLimitExceeded


class RateLimiter:
    """Allow at most max_requests per key within window_seconds"""

    def __init__(self, max_requests: int, window_seconds: int, message: str = "Too many requests, please try again later.",
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        self._store: Dict[str, Deque[float]] = {}
        self._next_sweep = clock() + window_seconds

    def __len__(self) -> int:
        """Number of keys currently tracked"""
        return len(self._store)

    def check(self, key: str) -> None:
        """Record a hit for key; raise RateLimitExceeded when over the limit"""
        now = self._clock()
        cutoff = now - self.window_seconds

        if now >= self._next_sweep:
            self._sweep(cutoff)
            self._next_sweep = now + self.window_seconds

        dq = self._store.setdefault(key, deque())

        # Drop timestamps outside the window
        while dq and dq[0] <= cutoff:
            dq.popleft()

        if len(dq) >= self.max_requests:
            raise RateLimitExceeded(self.message)

        dq.append(now)

    def _sweep(self, cutoff: float) -> None:
        # Forget keys whose newest hit has left the window
        idle = [key for key, dq in self._store.items() if not dq or dq[-1] <= cutoff]
        for key in idle:
            del self._store[key]

    def reset(self) -> None:
        self._store.clear()
