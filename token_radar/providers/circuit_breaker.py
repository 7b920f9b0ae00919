import threading
import time
from typing import Optional


class CircuitBreaker429:
    """
    Counts consecutive 429 responses from one provider.
    Once `threshold` is reached the breaker opens for `cooldown_seconds`.
    """

    def __init__(self, threshold: int = 5, cooldown_seconds: float = 60):
        self.threshold = int(threshold)
        self.cooldown_seconds = float(cooldown_seconds)
        self._count = 0
        self._last_trip_time: Optional[float] = None
        self._lock = threading.Lock()

    def record(self, is_429: bool) -> None:
        with self._lock:
            if is_429:
                self._count += 1
                if self.threshold > 0 and self._count >= self.threshold:
                    self._last_trip_time = time.monotonic()
            else:
                self._count = 0
                self._last_trip_time = None

    def is_open(self) -> bool:
        with self._lock:
            if self._last_trip_time is None:
                return False
            if (time.monotonic() - self._last_trip_time) > self.cooldown_seconds:
                self._count = 0
                self._last_trip_time = None
                return False
            return True

    def remaining_cooldown(self) -> float:
        with self._lock:
            if self._last_trip_time is None:
                return 0.0
            return max(0.0, self.cooldown_seconds - (time.monotonic() - self._last_trip_time))
