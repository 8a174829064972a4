"""
Google Books client.

API Documentation: https://developers.google.com/books/docs/v1/using
Works without a key at low volume; GOOGLE_BOOKS_API_KEY raises the quota.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

from .base import BaseSource
from .http_client import RetryingFetcher


class GoogleBooksSource(BaseSource):
    """Google Books volume search and lookup."""

    id = "googlebooks"
    name = "Google Books"
    base_url = "https://www.googleapis.com/books/v1"

    def __init__(self, fetcher: RetryingFetcher, api_key: Optional[str] = None, user_agent: Optional[str] = None):
        super().__init__(fetcher, user_agent)
        self.api_key = api_key

    def _with_key(self, query: Dict[str, Any]) -> Dict[str, Any]:
        if self.api_key:
            query['key'] = self.api_key
        return query

    async def search_volumes(
        self,
        q: str,
        start_index: Optional[int] = None,
        max_results: Optional[int] = None,
        lang_restrict: Optional[str] = None,
        print_type: Optional[str] = None,
        order_by: Optional[str] = None,
    ) -> Any:
        """
        Search volumes.

        Args:
            q: Query, may use intitle:/inauthor:/isbn:/inpublisher:/subject: terms
            start_index: Offset of the first result
            max_results: Results per page (Google caps at 40)
            lang_restrict: ISO 639-1 language code
            print_type: all, books or magazines
            order_by: relevance or newest
        """
        query = self._with_key({
            'q': q,
            'startIndex': start_index,
            'maxResults': max_results,
            'langRestrict': lang_restrict,
            'printType': print_type,
            'orderBy': order_by,
        })
        return await self._get(f"{self.base_url}/volumes", query)

    async def get_volume(self, volume_id: str) -> Any:
        return await self._get(
            f"{self.base_url}/volumes/{quote(volume_id, safe='')}",
            self._with_key({}),
        )
