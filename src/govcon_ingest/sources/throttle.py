"""Minimum-interval request throttle shared by an adapter's worker threads."""

import threading
import time


class RequestThrottle:
    """
    Enforces a minimum interval between consecutive requests to one upstream.
    Upstream APIs apply per-caller rate limits, so every partition task of an
    adapter goes through the same throttle.
    """

    def __init__(self, min_interval_ms: int = 0):
        self._min_interval = max(0, min_interval_ms) / 1000.0
        self._last_request = 0.0
        self._lock = threading.Lock()

    def wait(self) -> None:
        """Sleep as needed so this request respects the interval."""
        if self._min_interval <= 0:
            return
        with self._lock:
            elapsed = time.monotonic() - self._last_request
            wait_seconds = self._min_interval - elapsed
            if self._last_request > 0 and wait_seconds > 0:
                time.sleep(wait_seconds)
            self._last_request = time.monotonic()
