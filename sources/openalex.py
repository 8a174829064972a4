"""
OpenAlex client.

API Documentation: https://docs.openalex.org/
Free, no auth required. Very generous rate limits.
"""

from typing import Any, Optional

from .base import BaseSource


class OpenAlexSource(BaseSource):
    """OpenAlex scholarly works."""

    id = "openalex"
    name = "OpenAlex"
    base_url = "https://api.openalex.org"
    category = "scholarly"

    async def search_works(
        self,
        search: Optional[str] = None,
        filter: Optional[str] = None,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
    ) -> Any:
        """
        Search works.

        Args:
            search: Full-text search across title, abstract and fulltext
            filter: OpenAlex filter string, e.g. "publication_year:2020,is_oa:true"
            per_page: Results per page (max 200)
            page: 1-based page number
        """
        query = {
            'search': search,
            'filter': filter,
            'per_page': per_page,
            'page': page,
        }
        return await self._get(f"{self.base_url}/works", query)

    async def get_work(self, work_id: str) -> Any:
        """
        Fetch one work.

        Accepts a bare id (W2741809807), an OpenAlex URL
        (https://openalex.org/W2741809807) or an external id URL such as
        https://doi.org/10.7717/peerj.4375.
        """
        if work_id.startswith('https://openalex.org/'):
            work_id = work_id.rsplit('/', 1)[-1]
        return await self._get(f"{self.base_url}/works/{work_id}")
