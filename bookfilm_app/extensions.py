"""
================================================================================
Books/Film API - Application Services
================================================================================
Builds the shared fetch stack once per app:

  ResponseCache ─┐
                 ├─> RetryingFetcher ─> SourceRegistry ─> CombinedSearch
  RateLimiter ───┘

Every provider shares the same cache and the same per-host rate windows.
================================================================================
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from sources import SourceRegistry
from sources.http_client import RetryingFetcher
from sources.rate_limiter import DEFAULT_RATE_LIMITS, DomainRateLimiter
from sources.response_cache import ResponseCache

from .config import Settings
from .search import CombinedSearch, SearchDeduplicator


@dataclass
class Services:
    settings: Settings
    cache: ResponseCache
    rate_limiter: DomainRateLimiter
    fetcher: RetryingFetcher
    registry: SourceRegistry
    combined: CombinedSearch


def build_services(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Services:
    """
    Wire the service graph from settings.

    Args:
        settings: Runtime configuration
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """
    cache = ResponseCache(ttl=float(settings.cache_ttl))

    limits = dict(DEFAULT_RATE_LIMITS)
    limits.update(settings.rate_limits)
    rate_limiter = DomainRateLimiter(limits)

    fetcher = RetryingFetcher(
        cache=cache,
        rate_limiter=rate_limiter,
        transport=transport,
        timeout_ms=settings.timeout_ms,
        retries=settings.retries,
        retry_delay_ms=settings.retry_delay_ms,
    )

    registry = SourceRegistry(
        fetcher,
        google_books_key=settings.google_books_api_key,
        tmdb_access_token=settings.tmdb_access_token,
        tmdb_api_key=settings.tmdb_api_key,
        omdb_api_key=settings.omdb_api_key,
        crossref_mailto=settings.crossref_mailto,
        user_agent=settings.user_agent,
    )

    return Services(
        settings=settings,
        cache=cache,
        rate_limiter=rate_limiter,
        fetcher=fetcher,
        registry=registry,
        combined=CombinedSearch(registry, SearchDeduplicator()),
    )
