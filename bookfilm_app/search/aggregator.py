"""
================================================================================
Books/Film API - Combined Search
================================================================================
Fans one search out to several providers concurrently.

  search_books:      Google Books, Open Library, LIBRIS (+ deduplication)
  search_scholarly:  OpenAlex, Crossref (+ summary formatting)

A failing provider never fails the whole search: its entry carries the
error message and the remaining providers still report. Results are listed
in provider order, whichever finishes first.
================================================================================
"""

import asyncio
import logging
import re
from datetime import date
from typing import Any, Awaitable, Dict, List, Optional, Tuple

from sources import SearchPreconditionError, SourceRegistry
from sources.http_client import FetchError

from bookfilm_app.linkage.models import SourceResult, SourceShape
from .deduplicator import DEFAULT_SIMILARITY_THRESHOLD, SearchDeduplicator
from .formatters import format_crossref_response, format_openalex_response


logger = logging.getLogger(__name__)

MIN_RESULTS_PER_SOURCE = 1
MAX_RESULTS_PER_SOURCE = 20
MIN_SIMILARITY_THRESHOLD = 0.1
MAX_SIMILARITY_THRESHOLD = 1.0
MAX_RECENT_YEARS = 20

OPENALEX = "OpenAlex"
CROSSREF = "Crossref"

_YEAR_RANGE = re.compile(r'^\s*(\d{4})\s*-\s*(\d{4})\s*$')


def _current_year() -> int:
    return date.today().year


def _quoted(value: str) -> str:
    return '"' + value.replace('"', '') + '"'


def _strip_isbn(isbn: str) -> str:
    return re.sub(r'[\s-]', '', isbn)


def parse_year_range(year_range: str) -> Tuple[int, int]:
    """
    Parse "2020-2023" into (2020, 2023).

    Raises:
        SearchPreconditionError: If the range is malformed or reversed
    """
    match = _YEAR_RANGE.match(year_range or '')
    if not match:
        raise SearchPreconditionError(f"year_range must look like YYYY-YYYY, got '{year_range}'")
    start, end = int(match.group(1)), int(match.group(2))
    if start > end:
        raise SearchPreconditionError(f"year_range starts after it ends: '{year_range}'")
    return start, end


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if not (low <= value <= high):
        raise SearchPreconditionError(f"{name} must be between {low} and {high}, got {value}")


class CombinedSearch:
    """
    Cross-provider search orchestration.

    Usage:
        combined = CombinedSearch(registry)
        response = await combined.search_books(title="The Hobbit")
    """

    def __init__(self, registry: SourceRegistry, deduplicator: Optional[SearchDeduplicator] = None):
        self.registry = registry
        self.deduplicator = deduplicator or SearchDeduplicator()

    async def _run_source(self, source: str, call: Awaitable[Any]) -> SourceResult:
        try:
            return SourceResult(source=source, results=await call)
        except FetchError as e:
            logger.warning(f"{source} search failed: {e}")
            return SourceResult(source=source, error=str(e))
        except Exception as e:
            logger.exception(f"{source} search raised unexpectedly")
            return SourceResult(source=source, error=str(e) or e.__class__.__name__)

    async def _fan_out(self, calls: List[Tuple[str, Awaitable[Any]]]) -> List[SourceResult]:
        # gather() keeps argument order, so results follow provider order
        return list(await asyncio.gather(*(self._run_source(source, call) for source, call in calls)))

    @staticmethod
    def _summary(results: List[SourceResult]) -> Dict[str, Any]:
        successful = sum(1 for r in results if r.ok)
        return {
            'totalSources': len(results),
            'successfulSources': successful,
            'errorSources': len(results) - successful,
        }

    # =========================================================================
    # BOOKS
    # =========================================================================

    async def search_books(
        self,
        title: Optional[str] = None,
        author: Optional[str] = None,
        isbn: Optional[str] = None,
        publisher: Optional[str] = None,
        subject: Optional[str] = None,
        publication_year: Optional[int] = None,
        language: Optional[str] = None,
        max_results_per_source: int = 5,
        include_google_books: bool = True,
        include_open_library: bool = True,
        include_libris: bool = True,
        deduplicate: bool = True,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> Dict[str, Any]:
        """
        Search Google Books, Open Library and LIBRIS at once.

        Raises:
            SearchPreconditionError: No search field given, or an option is out of range
        """
        if not any((title, author, isbn, publisher, subject, publication_year)):
            raise SearchPreconditionError(
                "At least one search parameter must be provided "
                "(title, author, isbn, publisher, subject, or publication_year)"
            )
        _check_range('max_results_per_source', max_results_per_source,
                     MIN_RESULTS_PER_SOURCE, MAX_RESULTS_PER_SOURCE)
        _check_range('similarity_threshold', similarity_threshold,
                     MIN_SIMILARITY_THRESHOLD, MAX_SIMILARITY_THRESHOLD)

        calls: List[Tuple[str, Awaitable[Any]]] = []
        if include_google_books:
            calls.append((SourceShape.GOOGLE_BOOKS.value, self.registry.googlebooks.search_volumes(
                self._google_books_query(title, author, isbn, publisher, subject, publication_year),
                max_results=max_results_per_source,
                lang_restrict=language,
            )))
        if include_open_library:
            calls.append((SourceShape.OPEN_LIBRARY.value, self.registry.openlibrary.search(
                q=self._open_library_query(isbn, publisher, subject, publication_year),
                title=title,
                author=author,
                limit=max_results_per_source,
                lang=language,
            )))
        if include_libris:
            calls.append((SourceShape.LIBRIS.value, self.registry.libris.xsearch(
                self._libris_query(title, author, isbn, publisher, subject, publication_year),
                n=max_results_per_source,
            )))

        results = await self._fan_out(calls)

        summary = self._summary(results)
        summary['deduplication_applied'] = deduplicate
        if deduplicate:
            report = self.deduplicator.deduplicate(results, similarity_threshold)
            results = report.results
            summary['removed_duplicates'] = report.removed_duplicates
            summary['merged_records'] = [c.to_dict() for c in report.merged]

        return {
            'searchCriteria': {
                'title': title,
                'author': author,
                'isbn': isbn,
                'publisher': publisher,
                'subject': subject,
                'publicationYear': publication_year,
                'language': language,
            },
            'searchResults': [r.to_dict() for r in results],
            'summary': summary,
        }

    @staticmethod
    def _google_books_query(title, author, isbn, publisher, subject, publication_year) -> str:
        terms = []
        if title:
            terms.append(f"intitle:{_quoted(title)}")
        if author:
            terms.append(f"inauthor:{_quoted(author)}")
        if isbn:
            terms.append(f"isbn:{_strip_isbn(isbn)}")
        if publisher:
            terms.append(f"inpublisher:{_quoted(publisher)}")
        if subject:
            terms.append(f"subject:{_quoted(subject)}")
        if not terms and publication_year:
            # Google Books has no year operator
            terms.append(str(publication_year))
        return ' '.join(terms)

    @staticmethod
    def _open_library_query(isbn, publisher, subject, publication_year) -> Optional[str]:
        terms = []
        if isbn:
            terms.append(f"isbn:{_strip_isbn(isbn)}")
        if publisher:
            terms.append(f"publisher:{_quoted(publisher)}")
        if subject:
            terms.append(f"subject:{_quoted(subject)}")
        if publication_year:
            terms.append(f"first_publish_year:{publication_year}")
        return ' '.join(terms) or None

    @staticmethod
    def _libris_query(title, author, isbn, publisher, subject, publication_year) -> str:
        terms = []
        if title:
            terms.append(f"tit:{_quoted(title)}")
        if author:
            terms.append(f"forf:{_quoted(author)}")
        if isbn:
            terms.append(f"isbn:{_strip_isbn(isbn)}")
        if publisher:
            terms.append(publisher)
        if subject:
            terms.append(subject)
        if publication_year:
            terms.append(f"ar:{publication_year}")
        return ' '.join(terms)

    # =========================================================================
    # SCHOLARLY
    # =========================================================================

    async def search_scholarly(
        self,
        query: Optional[str] = None,
        title: Optional[str] = None,
        author: Optional[str] = None,
        doi: Optional[str] = None,
        publication_year: Optional[int] = None,
        year_range: Optional[str] = None,
        recent_years: Optional[int] = None,
        is_open_access: Optional[bool] = None,
        language: Optional[str] = None,
        max_results_per_source: int = 10,
        include_openalex: bool = True,
        include_crossref: bool = True,
        summary_mode: bool = True,
    ) -> Dict[str, Any]:
        """
        Search OpenAlex and Crossref at once.

        `recent_years` becomes a year range ending this year, unless a
        publication year or explicit range is also given.

        Raises:
            SearchPreconditionError: No search field given, or an option is out of range
        """
        if not any((query, title, author, doi, publication_year, year_range, recent_years)):
            raise SearchPreconditionError("At least one search parameter must be provided")
        _check_range('max_results_per_source', max_results_per_source,
                     MIN_RESULTS_PER_SOURCE, MAX_RESULTS_PER_SOURCE)
        if recent_years is not None:
            _check_range('recent_years', recent_years, 1, MAX_RECENT_YEARS)

        years: Optional[Tuple[int, int]] = None
        if publication_year:
            years = (publication_year, publication_year)
        elif year_range:
            years = parse_year_range(year_range)
        elif recent_years:
            current = _current_year()
            years = (current - recent_years + 1, current)

        calls: List[Tuple[str, Awaitable[Any]]] = []
        if include_openalex:
            calls.append((OPENALEX, self._openalex_search(
                query or title or author,
                self._openalex_filter(years, is_open_access, language, doi),
                max_results_per_source,
                summary_mode,
            )))
        if include_crossref:
            calls.append((CROSSREF, self._crossref_search(
                query, title, author,
                self._crossref_filter(years, doi),
                max_results_per_source,
                summary_mode,
            )))

        results = await self._fan_out(calls)

        return {
            'searchCriteria': {
                'query': query,
                'title': title,
                'author': author,
                'doi': doi,
                'publicationYear': publication_year,
                'yearRange': year_range,
                'recentYears': recent_years,
                'isOpenAccess': is_open_access,
                'language': language,
            },
            'searchResults': [r.to_dict() for r in results],
            'summary': self._summary(results),
        }

    async def _openalex_search(self, search, filter_, per_page, summary_mode):
        data = await self.registry.openalex.search_works(search=search, filter=filter_, per_page=per_page)
        return format_openalex_response(data, summary_mode)

    async def _crossref_search(self, query, title, author, filter_, rows, summary_mode):
        data = await self.registry.crossref.search_works(
            query=query,
            query_bibliographic=title,
            query_author=author,
            filter=filter_,
            rows=rows,
        )
        return format_crossref_response(data, summary_mode)

    @staticmethod
    def _openalex_filter(years, is_open_access, language, doi) -> Optional[str]:
        filters = []
        if years:
            start, end = years
            filters.append(f"publication_year:{start}" if start == end else f"publication_year:{start}-{end}")
        if is_open_access is not None:
            filters.append(f"is_oa:{'true' if is_open_access else 'false'}")
        if language:
            filters.append(f"language:{language}")
        if doi:
            filters.append(f"doi:{doi}")
        return ','.join(filters) or None

    @staticmethod
    def _crossref_filter(years, doi) -> Optional[str]:
        filters = []
        if years:
            start, end = years
            filters.append(f"from-pub-date:{start}-01-01")
            filters.append(f"until-pub-date:{end}-12-31")
        if doi:
            filters.append(f"doi:{doi}")
        return ','.join(filters) or None
