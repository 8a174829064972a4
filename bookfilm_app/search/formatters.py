"""
================================================================================
Books/Film API - Response Formatters
================================================================================
Condensed views of scholarly payloads.

OpenAlex and Crossref works carry far more metadata than a listing needs;
summary mode keeps the bibliographic essentials and a short abstract.
Payloads that don't look like a search response pass through unchanged.
================================================================================
"""

import json
from typing import Any, Dict, List, Optional

ABSTRACT_LIMIT = 300
MAX_LISTED_AUTHORS = 3
MAX_CONCEPTS = 3
CONCEPT_MIN_SCORE = 0.3
LISTING_LIMIT = 5


def _truncate(text: str, limit: int = ABSTRACT_LIMIT) -> str:
    return text[:limit] + '...' if len(text) > limit else text


def _authors_text(names: List[str], total: int) -> str:
    if not names:
        return 'Unknown authors'
    suffix = ' et al.' if total > MAX_LISTED_AUTHORS else ''
    return ', '.join(names) + suffix


def reconstruct_abstract(inverted_index: Dict[str, List[int]]) -> str:
    """
    Rebuild an abstract from OpenAlex's inverted index.

    Example:
        {"deep": [0], "learning": [1, 3], "for": [2]} → "deep learning for learning"
    """
    words = [
        (position, word)
        for word, positions in inverted_index.items()
        for position in positions
    ]
    words.sort(key=lambda pair: pair[0])
    return _truncate(' '.join(word for _, word in words))


# =============================================================================
# OPENALEX
# =============================================================================

def summarize_openalex_work(work: Dict[str, Any]) -> Dict[str, Any]:
    authorships = work.get('authorships') or []
    names = [
        (a.get('author') or {}).get('display_name')
        for a in authorships[:MAX_LISTED_AUTHORS]
        if isinstance(a, dict)
    ]
    names = [n for n in names if n]

    abstract = ''
    if work.get('abstract_inverted_index'):
        abstract = reconstruct_abstract(work['abstract_inverted_index'])

    concepts = [
        c.get('display_name')
        for c in work.get('concepts') or []
        if isinstance(c, dict) and (c.get('score') or 0) > CONCEPT_MIN_SCORE
    ][:MAX_CONCEPTS]

    open_access = work.get('open_access') or {}
    source = (work.get('primary_location') or {}).get('source') or {}
    doi = work.get('doi')

    return {
        'title': work.get('display_name') or work.get('title') or 'Untitled',
        'authors': _authors_text(names, len(authorships)),
        'year': work.get('publication_year'),
        'publication_date': work.get('publication_date'),
        'doi': doi,
        'citations': work.get('cited_by_count') or 0,
        'open_access': bool(work.get('is_oa') or open_access.get('is_oa')),
        'open_access_url': open_access.get('oa_url'),
        'journal': source.get('display_name'),
        'source_type': source.get('type'),
        'abstract': abstract,
        'type': work.get('type'),
        'language': work.get('language'),
        'concepts': concepts,
        'openalex_id': work.get('id'),
        'url': f"https://doi.org/{doi}" if doi else None,
    }


def format_openalex_response(response: Any, summary_mode: bool = True) -> Any:
    if not isinstance(response, dict) or not isinstance(response.get('results'), list):
        return response
    if not summary_mode:
        return response

    meta = response.get('meta') or {}
    return {
        'meta': {
            'count': meta.get('count') or 0,
            'db_response_time_ms': meta.get('db_response_time_ms'),
            'page': meta.get('page') or 1,
            'per_page': meta.get('per_page') or 25,
            'summary_mode': True,
        },
        'results': [summarize_openalex_work(work) for work in response['results']],
    }


# =============================================================================
# CROSSREF
# =============================================================================

def _first_year(date_holder: Optional[Dict[str, Any]]) -> Optional[int]:
    parts = (date_holder or {}).get('date-parts') or []
    if parts and parts[0] and parts[0][0]:
        return parts[0][0]
    return None


def _first_string(value: Any) -> Optional[str]:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def summarize_crossref_work(work: Dict[str, Any]) -> Dict[str, Any]:
    authors = work.get('author') or []
    names = [
        f"{a.get('given') or ''} {a.get('family') or ''}".strip()
        for a in authors[:MAX_LISTED_AUTHORS]
    ]
    names = [n for n in names if n]

    doi = work.get('DOI')
    return {
        'title': _first_string(work.get('title')) or 'Untitled',
        'authors': _authors_text(names, len(authors)),
        'year': _first_year(work.get('published-print')) or _first_year(work.get('published-online')),
        'doi': doi,
        'citations': work.get('is-referenced-by-count') or 0,
        'journal': _first_string(work.get('container-title')),
        'publisher': work.get('publisher'),
        'type': work.get('type'),
        'abstract': _truncate(work.get('abstract') or ''),
        'subjects': (work.get('subject') or [])[:MAX_CONCEPTS],
        'url': f"https://doi.org/{doi}" if doi else work.get('URL'),
        'crossref_url': work.get('URL'),
    }


def format_crossref_response(response: Any, summary_mode: bool = True) -> Any:
    message = response.get('message') if isinstance(response, dict) else None
    if not isinstance(message, dict) or not isinstance(message.get('items'), list):
        return response
    if not summary_mode:
        return response

    return {
        'status': response.get('status'),
        'message': {
            'total_results': message.get('total-results') or 0,
            'items_per_page': message.get('items-per-page') or 20,
            'query': message.get('query'),
            'summary_mode': True,
            'items': [summarize_crossref_work(work) for work in message['items']],
        },
    }


# =============================================================================
# PLAIN-TEXT LISTING
# =============================================================================

def _listing_entry(index: int, item: Dict[str, Any], show_open_access: bool) -> List[str]:
    lines = [
        f"{index}. {item.get('title') or 'Untitled'}",
        f"   Authors: {item.get('authors') or 'Unknown'}",
    ]
    if item.get('year'):
        lines.append(f"   Year: {item['year']}")
    if item.get('journal'):
        lines.append(f"   Journal: {item['journal']}")
    citations = f"   Citations: {item.get('citations') or 0}"
    if show_open_access:
        citations += f" | Open Access: {'Yes' if item.get('open_access') else 'No'}"
    lines.append(citations)
    if item.get('doi'):
        lines.append(f"   DOI: {item['doi']}")
    if item.get('abstract'):
        lines.append(f"   Abstract: {item['abstract']}")
    lines.append('')
    return lines


def format_search_results(results: Any, source: str) -> str:
    """
    Render summarized results as a readable text listing.

    OpenAlex and Crossref summaries list their first five items; anything
    else is pretty-printed JSON.
    """
    if not results:
        return f"No results from {source}"

    header = f"\n=== {source.upper()} RESULTS ===\n"
    lines: List[str] = []

    if source == 'OpenAlex' and isinstance(results, dict) and isinstance(results.get('results'), list):
        meta = results.get('meta') or {}
        count = meta.get('count') or len(results['results'])
        lines.append(f"Found {count} results ({meta.get('db_response_time_ms') or 'unknown'}ms)")
        lines.append('')
        for index, item in enumerate(results['results'][:LISTING_LIMIT], start=1):
            lines.extend(_listing_entry(index, item, show_open_access=True))
    elif (source == 'Crossref' and isinstance(results, dict)
          and isinstance(results.get('message'), dict)
          and isinstance(results['message'].get('items'), list)):
        message = results['message']
        lines.append(f"Found {message.get('total_results') or len(message['items'])} results")
        lines.append('')
        for index, item in enumerate(message['items'][:LISTING_LIMIT], start=1):
            lines.extend(_listing_entry(index, item, show_open_access=False))
    else:
        return header + json.dumps(results, indent=2, default=str)

    return header + '\n'.join(lines) + '\n'
