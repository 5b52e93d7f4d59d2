"""
Tests for the token bucket used by fetch workers.
"""
import threading
import time

import pytest

from outline_crawler.ratelimit import TokenBucket


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestTokenBucket:
    def test_starts_full_with_burst_equal_to_rate(self):
        clock = FakeClock()
        bucket = TokenBucket(3, clock=clock, sleep=clock.sleep)

        for _ in range(3):
            bucket.acquire()

        assert clock.sleeps == []

    def test_blocks_until_refilled(self):
        clock = FakeClock()
        bucket = TokenBucket(2, clock=clock, sleep=clock.sleep)
        bucket.acquire()
        bucket.acquire()

        bucket.acquire()

        assert clock.sleeps == [pytest.approx(0.5)]
        assert clock.now == pytest.approx(0.5)

    def test_refill_is_capped_at_capacity(self):
        clock = FakeClock()
        bucket = TokenBucket(2, clock=clock, sleep=clock.sleep)
        clock.now = 100.0

        assert bucket.try_acquire(2) is None
        assert bucket.try_acquire(1) == pytest.approx(0.5)

    def test_sliding_window_never_exceeds_rate_plus_burst(self):
        """Across any 1s window, acquisitions stay within rate + burst."""
        clock = FakeClock()
        rate = 4
        bucket = TokenBucket(rate, clock=clock, sleep=clock.sleep)
        stamps = []
        for _ in range(40):
            bucket.acquire()
            stamps.append(clock.now)

        for start in stamps:
            in_window = [t for t in stamps if start <= t < start + 1.0]
            assert len(in_window) <= rate + bucket.capacity

    def test_acquire_more_than_capacity_is_rejected(self):
        bucket = TokenBucket(2)
        with pytest.raises(ValueError):
            bucket.acquire(3)

    def test_fractional_rate_spaces_single_requests(self):
        clock = FakeClock()
        bucket = TokenBucket(0.5, clock=clock, sleep=clock.sleep)

        bucket.acquire()
        bucket.acquire()
        bucket.acquire()

        assert bucket.capacity == 1.0
        assert clock.sleeps == [pytest.approx(2.0), pytest.approx(2.0)]

    def test_rate_must_be_positive(self):
        with pytest.raises(ValueError):
            TokenBucket(0)

    def test_concurrent_acquire_is_bounded(self):
        """Many threads sharing one bucket still respect the aggregate rate."""
        rate = 20
        bucket = TokenBucket(rate)
        total = 30
        per_thread = total // 6

        def worker():
            for _ in range(per_thread):
                bucket.acquire()

        start = time.monotonic()
        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10)
        elapsed = time.monotonic() - start

        # 20 tokens are free up front, the remaining 10 need 0.5s of refill
        assert elapsed >= 0.45
