"""
Client-side request pacing for the catalog API.

One limiter is shared by every worker thread of a generation run, so slot
bookkeeping happens under a lock.
"""
import logging
import threading
import time

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Spaces calls at least 1 / calls_per_second apart, across threads.

        limiter = RateLimiter(calls_per_second=10)
        limiter.wait()
        session.get(url)
    """

    def __init__(self, calls_per_second: float = 10.0):
        if calls_per_second <= 0:
            raise ValueError(f"calls_per_second must be > 0 (got {calls_per_second})")

        self.min_interval = 1.0 / calls_per_second
        self._lock = threading.Lock()
        self._next_slot = 0.0
        self.total_waits = 0
        self.total_wait_time = 0.0

        logger.debug(f"Rate limiter: {calls_per_second:g} calls/s ({self.min_interval * 1000:.0f}ms apart)")

    def wait(self) -> None:
        """
        Block until the caller's slot.

        The slot is reserved under the lock and slept on outside it, so
        concurrent callers queue one interval apart instead of serializing
        on the lock.
        """
        with self._lock:
            now = time.monotonic()
            slot = max(now, self._next_slot)
            self._next_slot = slot + self.min_interval
            delay = slot - now
            if delay > 0:
                self.total_waits += 1
                self.total_wait_time += delay

        if delay > 0:
            time.sleep(delay)

    def reset(self) -> None:
        with self._lock:
            self._next_slot = 0.0
            self.total_waits = 0
            self.total_wait_time = 0.0

    def get_stats(self) -> dict:
        with self._lock:
            waits, waited = self.total_waits, self.total_wait_time
        return {
            "total_waits": waits,
            "total_wait_time": waited,
            "avg_wait_time": waited / waits if waits else 0,
        }
