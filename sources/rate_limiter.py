"""
================================================================================
Books/Film API - Per-Origin Rate Limiter
================================================================================
Sliding-window admission control for outbound API requests.

Every external origin (host) gets its own window:
  - Google Books: 100/min
  - Open Library: unthrottled
  - LIBRIS: 60/min
  - OpenAlex: 1000/min
  - Crossref: 50/min (polite pool)
  - TMDb: 40/min
  - OMDb: 100/min

Admission never fails; a caller over the limit is suspended until the oldest
request in the window ages out.
================================================================================
"""

import asyncio
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Dict, Mapping, Optional
from urllib.parse import urlparse


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    """Allowed number of requests per window."""
    limit: int
    window_ms: int


DEFAULT_RATE_LIMITS: Dict[str, RateLimit] = {
    'api.crossref.org': RateLimit(50, 60000),
    'www.googleapis.com': RateLimit(100, 60000),
    'api.openalex.org': RateLimit(1000, 60000),
    'www.omdbapi.com': RateLimit(100, 60000),
    'api.themoviedb.org': RateLimit(40, 60000),
    'libris.kb.se': RateLimit(60, 60000),
}


class RateWindow:
    """
    Sliding window of recent admission times for one origin.

    Timestamps are kept in milliseconds, oldest first.
    """

    def __init__(self, limit: int, window_ms: int):
        self.limit = limit
        self.window_ms = window_ms
        self.timestamps: Deque[float] = deque()

    def prune(self, now_ms: float) -> None:
        """Drop admissions that fell out of the window."""
        while self.timestamps and now_ms - self.timestamps[0] >= self.window_ms:
            self.timestamps.popleft()

    def wait_time_ms(self, now_ms: float) -> float:
        """Milliseconds until a slot frees up (0 if one is free now)."""
        self.prune(now_ms)
        if len(self.timestamps) < self.limit:
            return 0.0
        return max(self.window_ms - (now_ms - self.timestamps[0]), 0.0)

    def record(self, now_ms: float) -> None:
        self.timestamps.append(now_ms)


class DomainRateLimiter:
    """
    Rate limiter keyed by request origin.

    Usage:
        limiter = DomainRateLimiter()
        await limiter.admit("https://api.crossref.org/works?query=x")

    The clock and sleep functions are injectable so tests can drive time
    without waiting.
    """

    def __init__(
        self,
        limits: Optional[Mapping[str, RateLimit]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.limits: Dict[str, RateLimit] = dict(DEFAULT_RATE_LIMITS if limits is None else limits)
        self._clock = clock
        self._sleep = sleep
        self._windows: Dict[str, RateWindow] = {}
        # Shared across threads: each Flask worker thread runs its own event loop
        self._lock = threading.Lock()

    @staticmethod
    def origin_of(url: str) -> str:
        """Host part of a URL, used as the rate-limit key."""
        return (urlparse(url).hostname or '').lower()

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _get_window(self, origin: str) -> Optional[RateWindow]:
        rate = self.limits.get(origin)
        if rate is None or rate.limit <= 0 or rate.window_ms <= 0:
            return None
        window = self._windows.get(origin)
        if window is None:
            window = RateWindow(rate.limit, rate.window_ms)
            self._windows[origin] = window
        return window

    async def admit(self, url_or_origin: str) -> float:
        """
        Wait until a request to this origin may proceed, then record it.

        Args:
            url_or_origin: Full request URL or bare host name

        Returns:
            Total seconds spent waiting
        """
        origin = self.origin_of(url_or_origin) if '://' in url_or_origin else url_or_origin.lower()
        with self._lock:
            window = self._get_window(origin)
        if window is None:
            return 0.0

        waited = 0.0
        # Re-check after every sleep: other callers may have taken the freed slot.
        while True:
            with self._lock:
                now_ms = self._now_ms()
                wait_ms = window.wait_time_ms(now_ms)
                if wait_ms <= 0:
                    window.record(now_ms)
                    return waited
            logger.debug(f"Rate limit: {origin} waiting {wait_ms / 1000.0:.2f}s")
            await self._sleep(wait_ms / 1000.0)
            waited += wait_ms / 1000.0

    def stats(self) -> Dict[str, Dict[str, int]]:
        """Current window occupancy per throttled origin."""
        report = {}
        with self._lock:
            now_ms = self._now_ms()
            for origin, window in self._windows.items():
                window.prune(now_ms)
                report[origin] = {
                    'limit': window.limit,
                    'window_ms': window.window_ms,
                    'in_window': len(window.timestamps),
                }
        return report
