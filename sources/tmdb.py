"""
TMDb (The Movie Database) client.

API Documentation: https://developer.themoviedb.org/reference/intro/getting-started
Prefers a v4 bearer token (TMDB_ACCESS_TOKEN); falls back to a v3 api_key.
Bearer-authenticated responses are never cached.
"""

from typing import Any, Dict, Optional, Union

from .base import BaseSource
from .http_client import RetryingFetcher


class TmdbSource(BaseSource):
    """TMDb movie search and details."""

    id = "tmdb"
    name = "TMDb"
    base_url = "https://api.themoviedb.org/3"
    category = "film"

    def __init__(
        self,
        fetcher: RetryingFetcher,
        access_token: Optional[str] = None,
        api_key: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        super().__init__(fetcher, user_agent)
        self.access_token = access_token
        self.api_key = api_key

    def _headers(self) -> Dict[str, str]:
        if self.access_token:
            return {'Authorization': f"Bearer {self.access_token}"}
        return {}

    def _with_key(self, query: Dict[str, Any]) -> Dict[str, Any]:
        if not self.access_token and self.api_key:
            query['api_key'] = self.api_key
        return query

    async def search_movie(
        self,
        query: str,
        year: Optional[int] = None,
        language: Optional[str] = None,
        page: Optional[int] = None,
        include_adult: Optional[bool] = None,
    ) -> Any:
        params = self._with_key({
            'query': query,
            'year': year,
            'language': language,
            'page': page,
            'include_adult': include_adult,
        })
        return await self._get(f"{self.base_url}/search/movie", params)

    async def get_movie(self, movie_id: Union[int, str], append_to_response: Optional[str] = None) -> Any:
        """Movie details; `append_to_response` adds sub-resources (credits,videos,...)."""
        params = self._with_key({'append_to_response': append_to_response})
        return await self._get(f"{self.base_url}/movie/{movie_id}", params)
