"""Per-client request rate limiting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Request

from tabrelay.errors import RateLimitExceeded
from tabrelay.metrics.observability import PipelineMetrics, get_logger


@dataclass
class RateWindow:
    """Request count for one client inside the current window."""

    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window request limiter keyed by client address.

    A window opens on a client's first request and lasts ``window_seconds``;
    once it elapses the next request starts a fresh window. Expired windows are
    dropped once ``sweep_threshold`` clients are tracked. Instances are FastAPI
    dependencies, so one limiter per policy is wired into the app.
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: float,
        *,
        trust_forwarded_for: bool = False,
        clock: Callable[[], float] = time.monotonic,
        sweep_threshold: int = 10_000,
    ) -> None:
        self.name = name
        self.max_requests = max_requests
        self.window = window_seconds
        self._trust_forwarded_for = trust_forwarded_for
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._windows: dict[str, RateWindow] = {}
        self._lock = threading.Lock()
        self._logger = get_logger("ratelimit")

    def hit(self, key: str) -> int:
        """Count one request for ``key`` and return how many remain."""

        with self._lock:
            now = self._clock()
            if len(self._windows) >= self._sweep_threshold:
                self._sweep(now)
            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                window = RateWindow(count=0, reset_at=now + self.window)
                self._windows[key] = window
            if window.count >= self.max_requests:
                retry_after = max(0.0, window.reset_at - now)
                exceeded = True
            else:
                window.count += 1
                exceeded = False
            remaining = self.max_requests - window.count
        if exceeded:
            PipelineMetrics.observe_rate_limited(self.name)
            self._logger.warning("ratelimit.exceeded", policy=self.name, client=key, retry_after=retry_after)
            raise RateLimitExceeded(f"{self.name} policy exceeded for {key}")
        return remaining

    def remaining(self, key: str) -> int:
        with self._lock:
            window = self._windows.get(key)
            if window is None or self._clock() >= window.reset_at:
                return self.max_requests
            return max(0, self.max_requests - window.count)

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]

    def client_key(self, request: Request) -> str:
        if self._trust_forwarded_for:
            forwarded = request.headers.get("x-forwarded-for", "")
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
        return request.client.host if request.client else "unknown"

    def __call__(self, request: Request) -> None:
        self.hit(self.client_key(request))


__all__ = ["RateLimiter", "RateWindow"]
