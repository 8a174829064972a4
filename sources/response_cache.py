"""
Response cache for outbound API requests.

Design:
  - In-memory dict keyed by the fully resolved request URL
  - TTL-based expiration (1 hour), checked lazily on lookup
  - Expired entries swept once the cache grows past 1000 entries
  - Oversized payloads (>= 100 000 serialized chars) are never stored

Usage:
    cache = ResponseCache(ttl=3600)

    cache.store("https://openlibrary.org/search.json?q=dune", payload)
    cached = cache.lookup("https://openlibrary.org/search.json?q=dune")
"""

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional


logger = logging.getLogger(__name__)

MAX_PAYLOAD_CHARS = 100000
SWEEP_THRESHOLD = 1000

# Headers that do not make a response caller-specific
_IDENTITY_HEADERS = {'user-agent'}

MISS = object()


@dataclass
class CacheEntry:
    key: str
    value: Any
    stored_at: float


def is_cacheable(headers: Optional[Mapping[str, str]]) -> bool:
    """
    A request is cacheable when it carries no headers beyond User-Agent.

    Anything else (Authorization, cookies, ...) may make the response
    depend on per-call secrets.
    """
    if not headers:
        return True
    return all(name.lower() in _IDENTITY_HEADERS for name in headers)


def serialized_size(value: Any) -> int:
    """Length of the JSON serialization of a payload."""
    try:
        return len(json.dumps(value, default=str))
    except (TypeError, ValueError):
        return len(str(value))


class ResponseCache:
    """In-memory TTL cache for API responses."""

    def __init__(
        self,
        ttl: float = 3600.0,
        max_payload_chars: int = MAX_PAYLOAD_CHARS,
        sweep_threshold: int = SWEEP_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache.

        Args:
            ttl: Time-to-live in seconds (default: 1 hour)
            max_payload_chars: Serialized size ceiling for stored payloads
            sweep_threshold: Entry count above which expired entries are purged
            clock: Time source (seconds), injectable for tests
        """
        self.ttl = ttl
        self.max_payload_chars = max_payload_chars
        self.sweep_threshold = sweep_threshold
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at > self.ttl

    def lookup(self, url: str, default: Any = None) -> Any:
        """
        Get a cached payload if present and not expired.

        Returns:
            Cached value, or `default` on a miss
        """
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                self._misses += 1
                return default

            if self._expired(entry, self._clock()):
                del self._entries[url]
                self._misses += 1
                logger.debug(f"Cache EXPIRED: {url}")
                return default

            self._hits += 1
            logger.debug(f"Cache HIT: {url}")
            return entry.value

    def store(self, url: str, value: Any) -> bool:
        """
        Cache a payload.

        Returns:
            True if stored, False if skipped for size
        """
        size = serialized_size(value)
        if size >= self.max_payload_chars:
            logger.debug(f"Cache SKIP: {url} ({size} chars)")
            return False

        with self._lock:
            self._entries[url] = CacheEntry(key=url, value=value, stored_at=self._clock())
            if len(self._entries) > self.sweep_threshold:
                self._evict_expired_locked()
        return True

    def evict_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries evicted
        """
        with self._lock:
            return self._evict_expired_locked()

    def _evict_expired_locked(self) -> int:
        now = self._clock()
        expired_keys = [
            key for key, entry in self._entries.items()
            if self._expired(entry, now)
        ]
        for key in expired_keys:
            del self._entries[key]

        if expired_keys:
            logger.info(f"Response cache pruned: {len(expired_keys)} expired entries removed")
        return len(expired_keys)

    def clear(self) -> None:
        """Clear all cache entries and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with size, ttl, hits, misses and hit_rate (percent)
        """
        with self._lock:
            hits, misses, size = self._hits, self._misses, len(self._entries)
        total_requests = hits + misses
        hit_rate = (hits / total_requests * 100) if total_requests > 0 else 0.0

        return {
            'size': size,
            'ttl': self.ttl,
            'hits': hits,
            'misses': misses,
            'hit_rate': round(hit_rate, 2)
        }
