from collections.abc import Callable, Hashable
import time


class SlidingWindowRateLimiter:
    """Per-caller admission gate: at most ``max_requests`` within ``window_seconds``.

    The caller map is never pruned, so it grows with the number of distinct
    callers seen by the process.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: dict[Hashable, list[float]] = {}

    def allow(self, caller: Hashable) -> bool:
        now = self._clock()
        recent = [t for t in self._requests.get(caller, []) if now - t < self.window_seconds]
        if len(recent) >= self.max_requests:
            self._requests[caller] = recent
            return False
        recent.append(now)
        self._requests[caller] = recent
        return True
