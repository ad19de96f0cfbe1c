from __future__ import annotations

import threading
import time
from typing import Callable

from fastapi import Request

from .config import settings
from .errors import RateLimitError
from .logging_config import get_logger

logger = get_logger(__name__)


class FixedWindowRateLimiter:
    """Count hits per key in fixed windows of ``window_seconds``."""

    def __init__(self, max_hits: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.max_hits = max_hits
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_purge = clock()
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Record a hit; False once ``key`` exceeded its allowance for this window."""
        now = self._clock()
        with self._lock:
            if now - self._last_purge >= self.window_seconds:
                self._purge(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            return count <= self.max_hits

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _purge(self, now: float) -> None:
        for key in [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]:
            del self._windows[key]
        self._last_purge = now


auth_limiter = FixedWindowRateLimiter(settings.RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW_SECONDS)


def auth_rate_limit(request: Request) -> None:
    client_ip = request.client.host if request.client else "unknown"
    if not auth_limiter.hit(client_ip):
        logger.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
        raise RateLimitError("Too many requests from this IP, please try again later")
