import threading
import time
from typing import Optional

from utils.errors import RateLimitCancelled


class TokenBucketLimiter:
    """
    Token bucket shared by every worker thread.
    - rate: tokens added per second (None = unlimited, acquire returns at once)
    - burst: bucket capacity, defaults to rate and is never below one token
    """

    def __init__(self, rate: Optional[float] = None, burst: Optional[float] = None, name: str = "default"):
        if rate is not None and rate <= 0:
            rate = None
        self.rate = rate
        self.name = name
        self.burst = max(float(burst if burst else (rate or 1.0)), 1.0)
        self.tokens = self.burst
        self.last_update = time.monotonic()
        self._lock = threading.Lock()
        self.total_requests = 0
        self.total_waits = 0
        self.total_wait_time = 0.0

    def _refill(self):
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(self.burst, self.tokens + elapsed * self.rate)
        self.last_update = now

    def acquire(self, timeout: Optional[float] = None, cancel_event: Optional[threading.Event] = None) -> float:
        """
        Block until a token is free. Returns seconds spent waiting.

        Raises RateLimitCancelled if cancel_event is set while waiting, or
        straight away if the wait would run past timeout.
        """
        if self.rate is None:
            return 0.0

        deadline = None if timeout is None else time.monotonic() + timeout
        waited = 0.0

        while True:
            with self._lock:
                self._refill()
                if self.tokens >= 1.0:
                    self.tokens -= 1.0
                    self.total_requests += 1
                    if waited:
                        self.total_waits += 1
                        self.total_wait_time += waited
                    return waited
                wait_time = (1.0 - self.tokens) / self.rate

            if cancel_event is not None and cancel_event.is_set():
                raise RateLimitCancelled("rate limiter wait cancelled")
            if deadline is not None and time.monotonic() + wait_time > deadline:
                raise RateLimitCancelled(
                    f"rate limiter wait of {wait_time:.3f}s would exceed deadline"
                )

            if cancel_event is not None:
                if cancel_event.wait(wait_time):
                    raise RateLimitCancelled("rate limiter wait cancelled")
            else:
                time.sleep(wait_time)
            waited += wait_time

    def stats(self):
        return {
            "name": self.name,
            "rate": self.rate,
            "burst": self.burst,
            "current_tokens": self.tokens,
            "total_requests": self.total_requests,
            "total_waits": self.total_waits,
            "total_wait_time": self.total_wait_time,
            "avg_wait_time": self.total_wait_time / max(self.total_waits, 1),
        }
