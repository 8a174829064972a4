"""
Crossref client.

API Documentation: https://api.crossref.org/swagger-ui/index.html
Requests carrying a mailto join the "polite" pool.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

from .base import BaseSource
from .http_client import RetryingFetcher


class CrossrefSource(BaseSource):
    """Crossref works search and DOI lookup."""

    id = "crossref"
    name = "Crossref"
    base_url = "https://api.crossref.org"
    category = "scholarly"

    def __init__(self, fetcher: RetryingFetcher, mailto: Optional[str] = None, user_agent: Optional[str] = None):
        super().__init__(fetcher, user_agent)
        self.mailto = mailto

    def _headers(self) -> Dict[str, str]:
        return {'User-Agent': self.user_agent or 'books-film-api'}

    async def search_works(
        self,
        query: Optional[str] = None,
        query_bibliographic: Optional[str] = None,
        query_author: Optional[str] = None,
        filter: Optional[str] = None,
        rows: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Any:
        """
        Search works.

        Args:
            query: Free-text query
            query_bibliographic: Title/citation oriented query
            query_author: Author name query
            filter: Crossref filter, e.g. "from-pub-date:2020-01-01"
            rows: Results per page
            offset: Result offset
        """
        params = {
            'query': query,
            'query.bibliographic': query_bibliographic,
            'query.author': query_author,
            'filter': filter,
            'rows': rows,
            'offset': offset,
            'mailto': self.mailto,
        }
        return await self._get(f"{self.base_url}/works", params)

    async def get_work_by_doi(self, doi: str) -> Any:
        return await self._get(
            f"{self.base_url}/works/{quote(doi, safe='')}",
            {'mailto': self.mailto},
        )
