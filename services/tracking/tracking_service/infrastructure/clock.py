import threading
import time

class SystemClock:
    """Wall clock in nanoseconds, strictly increasing within this process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last = 0

    def now_ns(self) -> int:
        with self._lock:
            now = time.time_ns()
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return now

clock = SystemClock()

def get_clock() -> SystemClock:
    return clock
