"""
Open Library client.

API Documentation: https://openlibrary.org/developers/api
Free, no auth required. Search returns `docs`, works/editions are plain JSON.
"""

from typing import Any, Optional

from .base import BaseSource


class OpenLibrarySource(BaseSource):
    """Open Library search, works and editions."""

    id = "openlibrary"
    name = "Open Library"
    base_url = "https://openlibrary.org"

    async def search(
        self,
        q: Optional[str] = None,
        title: Optional[str] = None,
        author: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        fields: Optional[str] = None,
        sort: Optional[str] = None,
        lang: Optional[str] = None,
    ) -> Any:
        """
        Search books.

        Args:
            q: Free-text query (supports Solr syntax, e.g. isbn:9780261103344)
            title: Title filter
            author: Author filter
            page: 1-based page number
            limit: Results per page
            fields: Comma-separated field list to return
            sort: Sort order (new, old, rating, ...)
            lang: ISO 639-1 language preference
        """
        query = {
            'q': q,
            'title': title,
            'author': author,
            'page': page,
            'limit': limit,
            'fields': fields,
            'sort': sort,
            'lang': lang,
        }
        return await self._get(f"{self.base_url}/search.json", query)

    async def get_work(self, olid: str) -> Any:
        """Fetch a work by OLID (OL27448W or /works/OL27448W)."""
        key = olid if olid.startswith('/works/') else f"/works/{olid}"
        return await self._get(f"{self.base_url}{key}.json")

    async def get_edition(self, olid: str) -> Any:
        """Fetch an edition by OLID (OL7058607M or /books/OL7058607M)."""
        key = olid if olid.startswith('/books/') else f"/books/{olid}"
        return await self._get(f"{self.base_url}{key}.json")
