"""Fixed-window request limiter keyed by client address.

Each client gets ``max_requests`` per window; the window starts at the
client's first request and resets wholesale once it has elapsed. Expired
windows are swept at most once per window length, so idle clients do not
accumulate.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable

RATE_LIMIT_MESSAGE = "Too many requests, please slow down."


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int


class FixedWindowRateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_sweep = clock()

    @property
    def tracked_clients(self) -> int:
        """Number of clients with a tracked window."""
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window_seconds:
            return
        self._windows = {
            client_id: window
            for client_id, window in self._windows.items()
            if now - window[0] < self.window_seconds
        }
        self._last_sweep = now

    def hit(self, client_id: str) -> RateLimitDecision:
        now = self._clock()
        self._sweep(now)
        started, count = self._windows.get(client_id, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0

        count += 1
        self._windows[client_id] = (started, count)
        reset_after = max(0, math.ceil(started + self.window_seconds - now))
        return RateLimitDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_after=reset_after,
        )
