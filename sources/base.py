"""
================================================================================
Books/Film API - Base Source
================================================================================
Abstract base class for all external search providers.

Providers only build requests:
  - Open Library (REST/JSON)
  - Google Books (REST/JSON)
  - LIBRIS (Xsearch JSON, OAI-PMH XML)
  - OpenAlex (REST/JSON)
  - Crossref (REST/JSON)
  - TMDb (REST/JSON)
  - OMDb (REST/JSON)

Caching, rate limiting and retries live in the shared RetryingFetcher.
================================================================================
"""

from abc import ABC
from typing import Any, Dict, Mapping, Optional

from .http_client import RetryingFetcher, QueryValue


class SearchPreconditionError(ValueError):
    """
    Raised before any I/O when a request cannot be built.

    Missing search parameters, out-of-range options and missing API keys
    all end up here, never as FetchError.
    """


class BaseSource(ABC):
    """
    Base class for provider clients.

    Subclasses set `id`, `name` and `base_url` and expose coroutine
    methods that return the provider's raw payload.
    """

    # Provider identification
    id: str = "base"
    name: str = "Base Source"

    # API configuration
    base_url: str = ""

    # Book/film/scholarly grouping for listing endpoints
    category: str = "books"

    def __init__(self, fetcher: RetryingFetcher, user_agent: Optional[str] = None):
        self.fetcher = fetcher
        self.user_agent = user_agent

    def _headers(self) -> Dict[str, str]:
        """Default request headers (none unless a provider needs them)."""
        return {}

    async def _get(
        self,
        url: str,
        query: Optional[Mapping[str, QueryValue]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        request_headers = self._headers()
        if headers:
            request_headers.update(headers)
        return await self.fetcher.fetch(url, query=query, headers=request_headers)

    def describe(self) -> Dict[str, str]:
        return {
            'id': self.id,
            'name': self.name,
            'base_url': self.base_url,
            'category': self.category,
        }

    def __repr__(self):
        return f"<{self.__class__.__name__}(id='{self.id}')>"
