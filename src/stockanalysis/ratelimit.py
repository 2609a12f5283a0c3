"""Token-bucket pacing shared by outbound API clients."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

# A bucket within this of a whole token counts as full.
TOKEN_TOLERANCE = 1e-9


class RateLimiter:
    """Token bucket refilled continuously at ``requests_per_minute``.

    Construct one per upstream API and pass it to every client that calls it.
    """

    def __init__(
        self,
        requests_per_minute: float,
        burst: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        if burst <= 0:
            raise ValueError("burst must be positive")
        self.rate_per_second = requests_per_minute / 60.0
        self.capacity = float(burst)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._updated = clock()
        self._lock = threading.Lock()

    def acquire(self) -> float:
        """Block until a token is available; return seconds waited."""
        waited = 0.0
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1.0 - TOKEN_TOLERANCE:
                    self._tokens -= 1.0
                    return waited
                delay = (1.0 - self._tokens) / self.rate_per_second
            self._sleep(delay)
            waited += delay

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate_per_second)
        self._updated = now
