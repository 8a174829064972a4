"""
Combined cross-provider search: fan-out, deduplication and formatting.
"""

from .aggregator import CombinedSearch, parse_year_range
from .deduplicator import SearchDeduplicator, deduplicate_book_results
from .formatters import (
    format_crossref_response,
    format_openalex_response,
    format_search_results,
    summarize_crossref_work,
    summarize_openalex_work,
)

__all__ = [
    'CombinedSearch',
    'SearchDeduplicator',
    'deduplicate_book_results',
    'format_crossref_response',
    'format_openalex_response',
    'format_search_results',
    'parse_year_range',
    'summarize_crossref_work',
    'summarize_openalex_work',
]
