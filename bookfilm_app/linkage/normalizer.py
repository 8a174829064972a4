"""
================================================================================
Books/Film API - Record Normalizer
================================================================================
Projects provider result items onto NormalizedRecord for comparison.

Field table:
  Google Books   volumeInfo.title   volumeInfo.authors   first ISBN_13/ISBN_10
  Open Library   title              author_name          isbn[0]
  LIBRIS         title (str|list)   author (str|list)    isbn (str|list)[0]

The normalizer is total: unknown sources, missing titles and odd types yield
None (the item is left out of clustering), never an exception.
================================================================================
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .models import NormalizedRecord, SourceShape


logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')
_ISBN_NOISE = re.compile(r'[\s-]')

RawFields = Tuple[Any, Any, Any]


def normalize_text(value: str) -> str:
    """
    Normalize a title or author name.

    Examples:
        "Dune!" → "dune"
        "  J.R.R.  Tolkien " → "jrr tolkien"
    """
    value = _PUNCTUATION.sub('', value.lower())
    return _WHITESPACE.sub(' ', value).strip()


def normalize_isbn(value: Any) -> Optional[str]:
    """Strip hyphens and whitespace; None for anything unusable."""
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        return None
    isbn = _ISBN_NOISE.sub('', value).upper()
    return isbn or None


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


# =============================================================================
# PER-SHAPE FIELD EXTRACTION
# =============================================================================

def _google_books_fields(item: Dict[str, Any]) -> RawFields:
    info = item.get('volumeInfo')
    if not isinstance(info, dict):
        return None, None, None
    isbn = None
    for identifier in _as_list(info.get('industryIdentifiers')):
        if isinstance(identifier, dict) and identifier.get('type') in ('ISBN_13', 'ISBN_10'):
            isbn = identifier.get('identifier')
            break
    return info.get('title'), info.get('authors'), isbn


def _open_library_fields(item: Dict[str, Any]) -> RawFields:
    return item.get('title'), item.get('author_name'), _first(item.get('isbn'))


def _libris_fields(item: Dict[str, Any]) -> RawFields:
    return _first(item.get('title')), item.get('author'), _first(item.get('isbn'))


_EXTRACTORS: Dict[SourceShape, Callable[[Dict[str, Any]], RawFields]] = {
    SourceShape.GOOGLE_BOOKS: _google_books_fields,
    SourceShape.OPEN_LIBRARY: _open_library_fields,
    SourceShape.LIBRIS: _libris_fields,
}


def extract_items(shape: SourceShape, payload: Any) -> Optional[List[Any]]:
    """
    Pull the result item list out of a provider payload.

    Returns:
        The item list, or None when the payload is not the expected shape
    """
    if not isinstance(payload, dict):
        return None

    if shape is SourceShape.GOOGLE_BOOKS:
        items = payload.get('items', [])
    elif shape is SourceShape.OPEN_LIBRARY:
        items = payload.get('docs', [])
    elif shape is SourceShape.LIBRIS:
        container = payload.get('xsearch', payload)
        items = container.get('list', []) if isinstance(container, dict) else None
    else:
        return None

    return items if isinstance(items, list) else None


def replace_items(shape: SourceShape, payload: Dict[str, Any], items: List[Any]) -> Dict[str, Any]:
    """Shallow copy of `payload` with its item list swapped for `items`."""
    updated = dict(payload)
    if shape is SourceShape.GOOGLE_BOOKS:
        updated['items'] = items
    elif shape is SourceShape.OPEN_LIBRARY:
        updated['docs'] = items
    elif shape is SourceShape.LIBRIS:
        if isinstance(payload.get('xsearch'), dict):
            container = dict(payload['xsearch'])
            container['list'] = items
            updated['xsearch'] = container
        else:
            updated['list'] = items
    return updated


# =============================================================================
# NORMALIZER
# =============================================================================

class RecordNormalizer:
    """Turns provider items into NormalizedRecords."""

    def normalize(
        self,
        item: Any,
        source_name: str,
        origin_index: int = 0
    ) -> Optional[NormalizedRecord]:
        """
        Normalize one provider item.

        Args:
            item: Raw result item
            source_name: Provider display name ("Google Books", ...)
            origin_index: Index of the provider result list in the aggregation

        Returns:
            NormalizedRecord, or None if the item cannot be used
        """
        extractor = _EXTRACTORS.get(SourceShape.for_source(source_name))
        if extractor is None or not isinstance(item, dict):
            return None

        raw_title, raw_authors, raw_isbn = extractor(item)
        if not isinstance(raw_title, str):
            return None
        title = normalize_text(raw_title)
        if not title:
            return None

        authors = frozenset(
            name for name in (
                normalize_text(author) for author in _as_list(raw_authors)
                if isinstance(author, str)
            )
            if name
        )

        return NormalizedRecord(
            source_name=source_name,
            title=title,
            authors=authors,
            isbn=normalize_isbn(raw_isbn),
            raw_item=item,
            origin_index=origin_index,
        )


def normalize(item: Any, source_name: str, origin_index: int = 0) -> Optional[NormalizedRecord]:
    """Convenience function for RecordNormalizer().normalize()."""
    return RecordNormalizer().normalize(item, source_name, origin_index)
