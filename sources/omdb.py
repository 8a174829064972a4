"""
OMDb client.

API Documentation: https://www.omdbapi.com/
Every request needs OMDB_API_KEY.
"""

from typing import Any, Dict, Optional

from .base import BaseSource, SearchPreconditionError
from .http_client import RetryingFetcher


class OmdbSource(BaseSource):
    """OMDb title search and lookup."""

    id = "omdb"
    name = "OMDb"
    base_url = "https://www.omdbapi.com/"
    category = "film"

    TYPES = ('movie', 'series', 'episode')
    PLOTS = ('short', 'full')

    def __init__(self, fetcher: RetryingFetcher, api_key: Optional[str] = None, user_agent: Optional[str] = None):
        super().__init__(fetcher, user_agent)
        self.api_key = api_key

    def _require_key(self) -> str:
        if not self.api_key:
            raise SearchPreconditionError("OMDb requires OMDB_API_KEY")
        return self.api_key

    async def search(
        self,
        title: str,
        year: Optional[int] = None,
        type: Optional[str] = None,
        page: Optional[int] = None,
    ) -> Any:
        params: Dict[str, Any] = {
            'apikey': self._require_key(),
            's': title,
            'y': year,
            'type': type,
            'page': page,
        }
        return await self._get(self.base_url, params)

    async def by_id(
        self,
        imdb_id: Optional[str] = None,
        title: Optional[str] = None,
        year: Optional[int] = None,
        plot: Optional[str] = None,
    ) -> Any:
        """Lookup by IMDb id (tt0111161) or exact title."""
        api_key = self._require_key()
        if not imdb_id and not title:
            raise SearchPreconditionError("OMDb lookup needs an IMDb id or a title")
        params: Dict[str, Any] = {
            'apikey': api_key,
            'i': imdb_id,
            't': title,
            'y': year,
            'plot': plot,
        }
        return await self._get(self.base_url, params)
