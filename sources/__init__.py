"""
================================================================================
Books/Film API - Source Registry
================================================================================
Central registry for all external provider clients.

All providers share one RetryingFetcher, and with it one response cache and
one set of per-origin rate windows:

  books:      openlibrary, googlebooks, libris
  scholarly:  openalex, crossref
  film:       tmdb, omdb
================================================================================
"""

from typing import Dict, List, Optional

from .base import BaseSource, SearchPreconditionError
from .crossref import CrossrefSource
from .googlebooks import GoogleBooksSource
from .http_client import FetchError, RetryingFetcher, build_url
from .libris import LibrisSource
from .omdb import OmdbSource
from .openalex import OpenAlexSource
from .openlibrary import OpenLibrarySource
from .rate_limiter import DEFAULT_RATE_LIMITS, DomainRateLimiter, RateLimit
from .response_cache import ResponseCache
from .tmdb import TmdbSource


class SourceRegistry:
    """
    Holds one instance of every provider client.

    Usage:
        registry = SourceRegistry(fetcher, google_books_key="...")
        data = await registry.googlebooks.search_volumes("intitle:dune")
    """

    def __init__(
        self,
        fetcher: RetryingFetcher,
        google_books_key: Optional[str] = None,
        tmdb_access_token: Optional[str] = None,
        tmdb_api_key: Optional[str] = None,
        omdb_api_key: Optional[str] = None,
        crossref_mailto: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        self.fetcher = fetcher
        self.openlibrary = OpenLibrarySource(fetcher, user_agent=user_agent)
        self.googlebooks = GoogleBooksSource(fetcher, api_key=google_books_key, user_agent=user_agent)
        self.libris = LibrisSource(fetcher, user_agent=user_agent)
        self.openalex = OpenAlexSource(fetcher, user_agent=user_agent)
        self.crossref = CrossrefSource(fetcher, mailto=crossref_mailto, user_agent=user_agent)
        self.tmdb = TmdbSource(fetcher, access_token=tmdb_access_token, api_key=tmdb_api_key, user_agent=user_agent)
        self.omdb = OmdbSource(fetcher, api_key=omdb_api_key, user_agent=user_agent)

        self._sources: Dict[str, BaseSource] = {
            source.id: source for source in (
                self.openlibrary, self.googlebooks, self.libris,
                self.openalex, self.crossref,
                self.tmdb, self.omdb,
            )
        }

    @property
    def sources(self) -> Dict[str, BaseSource]:
        return dict(self._sources)

    def get_available_sources(self) -> List[Dict[str, str]]:
        """Describe every provider for listing endpoints."""
        return [source.describe() for source in self._sources.values()]


__all__ = [
    'BaseSource',
    'CrossrefSource',
    'DEFAULT_RATE_LIMITS',
    'DomainRateLimiter',
    'FetchError',
    'GoogleBooksSource',
    'LibrisSource',
    'OmdbSource',
    'OpenAlexSource',
    'OpenLibrarySource',
    'RateLimit',
    'ResponseCache',
    'RetryingFetcher',
    'SearchPreconditionError',
    'SourceRegistry',
    'TmdbSource',
    'build_url',
]
