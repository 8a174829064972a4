"""
================================================================================
Books/Film API - Book Provider Routes
================================================================================
Pass-through endpoints for the book catalogues:

  GET /api/books/openlibrary/search           - Open Library search
  GET /api/books/openlibrary/works/<olid>     - Work by OLID
  GET /api/books/openlibrary/editions/<olid>  - Edition by OLID
  GET /api/books/googlebooks/search           - Google Books volume search
  GET /api/books/googlebooks/volumes/<id>     - Volume by id
  GET /api/books/libris/xsearch               - LIBRIS Xsearch
  GET /api/books/libris/oai                   - LIBRIS OAI-PMH ListRecords (XML)
================================================================================
"""

from flask import Blueprint, Response, jsonify, request

from sources.base import SearchPreconditionError
from .common import get_services, run_async
from .validators import choice, optional_int, optional_string, required_string, validate_pagination

books_bp = Blueprint('books_api', __name__, url_prefix='/api/books')

LIBRIS_FORMATS = ('json', 'marcxml', 'mods', 'rdf', 'ris')


# =============================================================================
# OPEN LIBRARY
# =============================================================================

@books_bp.route('/openlibrary/search')
def openlibrary_search():
    args = request.args
    q = optional_string(args, 'q')
    title = optional_string(args, 'title')
    author = optional_string(args, 'author')
    if not (q or title or author):
        raise SearchPreconditionError("Provide at least one of: q, title, author")

    lang = optional_string(args, 'lang')
    if lang is not None and len(lang) != 2:
        raise SearchPreconditionError("Field 'lang' must be a 2-letter language code")

    page, limit = validate_pagination(args.get('page'), args.get('limit'))
    source = get_services().registry.openlibrary
    return jsonify(run_async(source.search(
        q=q,
        title=title,
        author=author,
        page=page if args.get('page') else None,
        limit=limit,
        fields=optional_string(args, 'fields'),
        sort=optional_string(args, 'sort'),
        lang=lang,
    )))


@books_bp.route('/openlibrary/works/<olid>')
def openlibrary_work(olid: str):
    return jsonify(run_async(get_services().registry.openlibrary.get_work(olid)))


@books_bp.route('/openlibrary/editions/<olid>')
def openlibrary_edition(olid: str):
    return jsonify(run_async(get_services().registry.openlibrary.get_edition(olid)))


# =============================================================================
# GOOGLE BOOKS
# =============================================================================

@books_bp.route('/googlebooks/search')
def googlebooks_search():
    args = request.args
    source = get_services().registry.googlebooks
    return jsonify(run_async(source.search_volumes(
        required_string(args, 'q'),
        start_index=optional_int(args, 'start_index', minimum=0),
        max_results=optional_int(args, 'max_results', minimum=1, maximum=40),
        lang_restrict=optional_string(args, 'lang_restrict'),
        print_type=optional_string(args, 'print_type'),
        order_by=choice(args, 'order_by', ('relevance', 'newest')),
    )))


@books_bp.route('/googlebooks/volumes/<volume_id>')
def googlebooks_volume(volume_id: str):
    return jsonify(run_async(get_services().registry.googlebooks.get_volume(volume_id)))


# =============================================================================
# LIBRIS
# =============================================================================

@books_bp.route('/libris/xsearch')
def libris_xsearch():
    args = request.args
    data_format = choice(args, 'format', LIBRIS_FORMATS) or 'json'
    data = run_async(get_services().registry.libris.xsearch(
        required_string(args, 'query'),
        n=optional_int(args, 'n', minimum=1, maximum=200),
        start=optional_int(args, 'start', minimum=0),
        format=data_format,
    ))
    if isinstance(data, str):
        return Response(data, mimetype='text/plain' if data_format == 'ris' else 'application/xml')
    return jsonify(data)


@books_bp.route('/libris/oai')
def libris_oai():
    args = request.args
    xml = run_async(get_services().registry.libris.oai_list_records(
        metadata_prefix=optional_string(args, 'metadata_prefix') or 'oai_dc',
        from_=optional_string(args, 'from'),
        until=optional_string(args, 'until'),
        set_=optional_string(args, 'set'),
        resumption_token=optional_string(args, 'resumption_token', max_length=2000),
    ))
    return Response(xml, mimetype='application/xml')
