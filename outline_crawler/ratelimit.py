from __future__ import annotations

import threading
import time
from typing import Callable, Optional


class TokenBucket:
    """Token bucket shared by fetch workers.

    Refills continuously at `rate` tokens per second up to a burst capacity
    equal to `rate`, but never below one token, so a fractional rate such as
    0.5 means one request every 2 seconds. The bucket starts full. `acquire`
    blocks until enough tokens are available and never gives up.
    """

    def __init__(
        self,
        rate: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        self.rate = float(rate)
        self.capacity = max(float(rate), 1.0)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._tokens = self.capacity
        self._last = clock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last
        self._last = now
        if elapsed > 0:
            self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)

    def try_acquire(self, n: int = 1) -> Optional[float]:
        """Take `n` tokens if available and return None, else return seconds to wait."""
        with self._lock:
            self._refill()
            if self._tokens >= n:
                self._tokens -= n
                return None
            return (n - self._tokens) / self.rate

    def acquire(self, n: int = 1) -> None:
        if n > self.capacity:
            raise ValueError(f"cannot acquire {n} tokens from a bucket of {self.capacity:g}")
        while True:
            wait_for = self.try_acquire(n)
            if wait_for is None:
                return
            self._sleep(wait_for)  # lock is not held here
