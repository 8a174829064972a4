"""
LIBRIS (Swedish National Library) client.

  - Xsearch: free-text search, JSON by default
  - OAI-PMH: bulk harvesting, returns raw XML text
"""

from typing import Any, Optional

from .base import BaseSource


class LibrisSource(BaseSource):
    """LIBRIS Xsearch and OAI-PMH ListRecords."""

    id = "libris"
    name = "LIBRIS (Swedish National Library)"
    base_url = "https://libris.kb.se"

    XSEARCH_FORMATS = ('json', 'marcxml', 'mods', 'rdf', 'ris')

    async def xsearch(
        self,
        query: str,
        n: Optional[int] = None,
        start: Optional[int] = None,
        format: str = 'json',
    ) -> Any:
        """
        Free-text search.

        Args:
            query: Xsearch query (supports tit:, forf:, isbn:, ar: prefixes)
            n: Number of records
            start: 1-based offset
            format: json, marcxml, mods, rdf or ris
        """
        params = {
            'query': query,
            'format': format or 'json',
            'n': n or None,
            'start': start or None,
        }
        return await self._get(f"{self.base_url}/xsearch", params)

    async def oai_list_records(
        self,
        metadata_prefix: str = 'oai_dc',
        from_: Optional[str] = None,
        until: Optional[str] = None,
        set_: Optional[str] = None,
        resumption_token: Optional[str] = None,
    ) -> str:
        """
        OAI-PMH ListRecords harvest.

        A resumption token continues a previous harvest and replaces all
        other arguments, as the protocol requires.
        """
        if resumption_token:
            params = {'verb': 'ListRecords', 'resumptionToken': resumption_token}
        else:
            params = {
                'verb': 'ListRecords',
                'metadataPrefix': metadata_prefix or 'oai_dc',
                'from': from_,
                'until': until,
                'set': set_,
            }
        return await self._get(f"{self.base_url}/api/oaipmh/", params)
