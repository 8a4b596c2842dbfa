"""
Per-key sliding-window rate limiting, in memory. Keys are "<endpoint>:<ip>" so the token
exchange and the profile fetch are budgeted separately.
"""
import math
import threading
import time

from fastapi import HTTPException, status

WINDOW_SECONDS = 60


class SlidingWindowLimiter:
    """Allow at most `limit` hits per key within the trailing window."""

    def __init__(self, window_seconds: int = WINDOW_SECONDS, clock=time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str, limit: int) -> int | None:
        """
        Record a hit for key if under limit. Returns None when allowed, otherwise the
        suggested Retry-After in whole seconds (>= 1). A limit <= 0 disables the check.
        """
        if limit <= 0:
            return None
        now = self._clock()
        with self._lock:
            self._sweep(now)
            recent = [t for t in self._hits.get(key, []) if t > now - self.window_seconds]
            if len(recent) >= limit:
                self._hits[key] = recent
                return max(1, math.ceil(self.window_seconds - (now - min(recent))))
            recent.append(now)
            self._hits[key] = recent
            return None

    def _sweep(self, now: float) -> None:
        """Drop keys with no hit inside the window. Runs at most once per window."""
        if now - self._last_sweep < self.window_seconds:
            return
        cutoff = now - self.window_seconds
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]
        self._last_sweep = now

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


limiter = SlidingWindowLimiter()


def enforce(key: str, limit: int) -> None:
    """Raise 429 with Retry-After when key is over its budget."""
    retry_after = limiter.hit(key, limit)
    if retry_after is not None:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": "rate_limited", "error_description": "Too many requests; slow down"},
            headers={"Retry-After": str(retry_after)},
        )
