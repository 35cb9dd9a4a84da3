import threading
import time
from typing import Callable, List

from utils.logger import logger


class RateLimiter:
    """
    A sliding-window limiter for outbound generation requests.
    """

    def __init__(self, max_requests: int = 15, window_sec: float = 60.0, clock: Callable[[], float] = time.monotonic):
        """
        Initializes the limiter.

        Args:
            max_requests: How many requests are allowed inside one window.
            window_sec: Length of the trailing window in seconds.
            clock: Monotonic time source, injectable for tests.
        """
        if max_requests <= 0:
            raise ValueError("max_requests must be a positive integer.")
        if window_sec <= 0:
            raise ValueError("window_sec must be positive.")
        self.max_requests = max_requests
        self.window_sec = window_sec
        self._clock = clock
        self._timestamps: List[float] = []
        self._lock = threading.Lock()

    def check(self) -> bool:
        """
        Records an attempt and reports whether it is within the limit.

        Every call is recorded, including rejected ones, so hammering the
        limiter keeps the window full.

        Returns:
            True if fewer than `max_requests` attempts were seen in the window.
        """
        with self._lock:
            now = self._clock()
            recent = [ts for ts in self._timestamps if now - ts < self.window_sec]
            allowed = len(recent) < self.max_requests
            recent.append(now)
            self._timestamps = recent

        if not allowed:
            logger.warning(f"Rate limit reached: {self.max_requests} requests per {self.window_sec:g}s")
        return allowed

    def remaining(self) -> int:
        """Number of requests still allowed in the current window."""
        with self._lock:
            now = self._clock()
            recent = [ts for ts in self._timestamps if now - ts < self.window_sec]
            return max(self.max_requests - len(recent), 0)

    def reset(self) -> None:
        with self._lock:
            self._timestamps = []
