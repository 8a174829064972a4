"""
================================================================================
Books/Film API - Retrying HTTP Fetcher
================================================================================
One logical GET against an external provider:

  1. Resolve the full URL (sorted query, empty parameters dropped)
  2. Serve from the response cache when the request is cacheable
  3. Wait for the origin's rate-limit window
  4. Attempt loop with classification-driven retry and exponential backoff
  5. Store cacheable successes

Retryable: connection failures, timeouts, HTTP 408/429/500/502/503/504.
Everything else is fatal and surfaces immediately as FetchError.
================================================================================
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from .rate_limiter import DomainRateLimiter
from .response_cache import MISS, ResponseCache, is_cacheable


logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
ERROR_BODY_LIMIT = 400

DEFAULT_TIMEOUT_MS = 20000
DEFAULT_RETRIES = 2
DEFAULT_RETRY_DELAY_MS = 1000

QueryValue = Any


class FetchError(Exception):
    """Raised when a request fails fatally or exhausts its retry budget."""

    def __init__(self, message: str, url: str, status: Optional[int] = None, attempts: int = 1):
        self.url = url
        self.status = status
        self.attempts = attempts
        super().__init__(message)


class AttemptOutcome(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass
class FetchAttempt:
    """Result of a single attempt inside one logical fetch."""
    attempt_index: int
    outcome: AttemptOutcome
    payload: Any = None
    status: Optional[int] = None
    reason: str = ""


def _format_query_value(value: QueryValue) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def build_url(base_url: str, query: Optional[Mapping[str, QueryValue]] = None) -> str:
    """
    Build the canonical request URL.

    Parameters already present on `base_url` are kept; new ones override
    them. None and empty-string values are omitted, and parameters are
    sorted so equivalent requests share a cache key.
    """
    parts = urlsplit(base_url)
    params: Dict[str, str] = dict(parse_qsl(parts.query, keep_blank_values=True))
    for key, value in (query or {}).items():
        if value is None or value == '':
            continue
        params[key] = _format_query_value(value)

    pairs: List[Tuple[str, str]] = sorted(params.items())
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(pairs), parts.fragment))


def is_retryable_status(status: int) -> bool:
    return status in RETRYABLE_STATUS_CODES


class RetryingFetcher:
    """
    Cached, rate-limited, retrying GET client.

    The cache and rate limiter are shared instances handed in at startup;
    tests pass fresh ones (and an httpx.MockTransport) per case.

    Usage:
        fetcher = RetryingFetcher(cache=ResponseCache(), rate_limiter=DomainRateLimiter())
        data = await fetcher.fetch("https://api.openalex.org/works", query={"search": "dune"})
    """

    def __init__(
        self,
        cache: Optional[ResponseCache] = None,
        rate_limiter: Optional[DomainRateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retries: int = DEFAULT_RETRIES,
        retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS,
    ):
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.timeout_ms = timeout_ms
        self.retries = retries
        self.retry_delay_ms = retry_delay_ms
        self._transport = transport
        self._sleep = sleep

    def _make_client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=timeout,
            follow_redirects=True,
        )

    async def fetch(
        self,
        url: str,
        query: Optional[Mapping[str, QueryValue]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout_ms: Optional[int] = None,
        retries: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
    ) -> Any:
        """
        Perform one logical GET.

        Args:
            url: Base URL (may already carry query parameters)
            query: Query parameters; None/empty values are dropped
            headers: Request headers; anything beyond User-Agent disables caching
            timeout_ms: Per-attempt timeout
            retries: Additional attempts after the first
            retry_delay_ms: Base backoff delay, doubled per attempt

        Returns:
            Parsed JSON for JSON responses, text otherwise

        Raises:
            FetchError: On a fatal failure or once retries are exhausted
        """
        timeout = (self.timeout_ms if timeout_ms is None else timeout_ms) / 1000.0
        retries = max(self.retries if retries is None else retries, 0)
        retry_delay = (self.retry_delay_ms if retry_delay_ms is None else retry_delay_ms) / 1000.0
        request_headers = dict(headers or {})

        full_url = build_url(url, query)
        cacheable = self.cache is not None and is_cacheable(request_headers)

        if cacheable:
            cached = self.cache.lookup(full_url, MISS)
            if cached is not MISS:
                return cached

        if self.rate_limiter is not None:
            await self.rate_limiter.admit(full_url)

        last_attempt: Optional[FetchAttempt] = None
        async with self._make_client(timeout) as client:
            for attempt_index in range(retries + 1):
                attempt = await self._attempt(client, full_url, request_headers, timeout, attempt_index)

                if attempt.outcome is AttemptOutcome.SUCCESS:
                    if cacheable:
                        self.cache.store(full_url, attempt.payload)
                    return attempt.payload

                last_attempt = attempt
                if attempt.outcome is AttemptOutcome.RETRYABLE and attempt_index < retries:
                    delay = retry_delay * (2 ** attempt_index)
                    logger.warning(
                        f"GET attempt {attempt_index + 1}/{retries + 1} failed "
                        f"({attempt.reason}), retrying in {delay:.1f}s"
                    )
                    await self._sleep(delay)
                    continue
                break

        logger.error(f"GET failed after {last_attempt.attempt_index + 1} attempt(s): {last_attempt.reason}")
        raise FetchError(
            last_attempt.reason,
            url=full_url,
            status=last_attempt.status,
            attempts=last_attempt.attempt_index + 1,
        )

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        url: str,
        headers: Dict[str, str],
        timeout: float,
        attempt_index: int,
    ) -> FetchAttempt:
        """Issue one request and classify what came back."""
        try:
            response = await asyncio.wait_for(client.get(url, headers=headers), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return FetchAttempt(
                attempt_index, AttemptOutcome.RETRYABLE,
                reason=f"Timeout after {timeout:.1f}s - {url}",
            )
        except (httpx.NetworkError, httpx.RemoteProtocolError) as e:
            return FetchAttempt(
                attempt_index, AttemptOutcome.RETRYABLE,
                reason=f"Network error - {url} - {e}",
            )
        except httpx.HTTPError as e:
            return FetchAttempt(
                attempt_index, AttemptOutcome.FATAL,
                reason=f"Request error - {url} - {e}",
            )

        status = response.status_code
        if not response.is_success:
            try:
                body = response.text[:ERROR_BODY_LIMIT]
            except (UnicodeDecodeError, LookupError):
                body = ''
            outcome = AttemptOutcome.RETRYABLE if is_retryable_status(status) else AttemptOutcome.FATAL
            return FetchAttempt(
                attempt_index, outcome, status=status,
                reason=f"HTTP {status} {response.reason_phrase} - {url} - {body}",
            )

        content_type = (response.headers.get('content-type') or '').lower()
        if 'json' in content_type:
            try:
                payload = response.json()
            except ValueError as e:
                return FetchAttempt(
                    attempt_index, AttemptOutcome.FATAL, status=status,
                    reason=f"Malformed JSON body - {url} - {e}",
                )
        else:
            payload = response.text

        return FetchAttempt(attempt_index, AttemptOutcome.SUCCESS, payload=payload, status=status)
