"""Combined Search API Blueprint.

Fans one request out to several providers at once.
"""

from typing import Any, Dict

from flask import Blueprint, Response, jsonify, request

from sources.base import SearchPreconditionError
from ..search.formatters import format_search_results
from .common import get_services, run_async
from .validators import choice, optional_bool, optional_float, optional_int, optional_string


search_bp = Blueprint('search_api', __name__, url_prefix='/api/search')


def _payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SearchPreconditionError("Request body must be a JSON object")
    return data


def _flag(data: Dict[str, Any], name: str, default: bool) -> bool:
    value = optional_bool(data, name)
    return default if value is None else value


@search_bp.route('/books', methods=['POST'])
def search_books():
    """
    Search Google Books, Open Library and LIBRIS together.

    Request:
        {
            "title": "The Hobbit",
            "author": "Tolkien",
            "max_results_per_source": 5,
            "deduplicate": true,
            "similarity_threshold": 0.8
        }
    """
    data = _payload()
    threshold = optional_float(data, 'similarity_threshold')
    max_results = optional_int(data, 'max_results_per_source')
    response = run_async(get_services().combined.search_books(
        title=optional_string(data, 'title'),
        author=optional_string(data, 'author'),
        isbn=optional_string(data, 'isbn'),
        publisher=optional_string(data, 'publisher'),
        subject=optional_string(data, 'subject'),
        publication_year=optional_int(data, 'publication_year'),
        language=optional_string(data, 'language'),
        max_results_per_source=5 if max_results is None else max_results,
        include_google_books=_flag(data, 'include_google_books', True),
        include_open_library=_flag(data, 'include_open_library', True),
        include_libris=_flag(data, 'include_libris', True),
        deduplicate=_flag(data, 'deduplicate', True),
        similarity_threshold=0.8 if threshold is None else threshold,
    ))
    return jsonify(response)


@search_bp.route('/scholarly', methods=['POST'])
def search_scholarly():
    """
    Search OpenAlex and Crossref together.

    Request:
        {
            "query": "graph neural networks",
            "recent_years": 3,
            "is_open_access": true,
            "summary_mode": true,
            "format": "json"
        }

    With "format": "text" the summarized results come back as a plain-text
    listing per source.
    """
    data = _payload()
    max_results = optional_int(data, 'max_results_per_source')
    output = choice(data, 'format', ('json', 'text')) or 'json'
    response = run_async(get_services().combined.search_scholarly(
        query=optional_string(data, 'query'),
        title=optional_string(data, 'title'),
        author=optional_string(data, 'author'),
        doi=optional_string(data, 'doi'),
        publication_year=optional_int(data, 'publication_year'),
        year_range=optional_string(data, 'year_range'),
        recent_years=optional_int(data, 'recent_years'),
        is_open_access=optional_bool(data, 'is_open_access'),
        language=optional_string(data, 'language'),
        max_results_per_source=10 if max_results is None else max_results,
        include_openalex=_flag(data, 'include_openalex', True),
        include_crossref=_flag(data, 'include_crossref', True),
        summary_mode=True if output == 'text' else _flag(data, 'summary_mode', True),
    ))
    if output == 'text':
        return Response(_text_listing(response), mimetype='text/plain')
    return jsonify(response)


def _text_listing(response: Dict[str, Any]) -> str:
    blocks = []
    for entry in response['searchResults']:
        block = format_search_results(entry['results'], entry['source'])
        if 'error' in entry:
            block += f"\nError: {entry['error']}"
        blocks.append(block)
    return '\n'.join(blocks)
