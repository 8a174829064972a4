"""
================================================================================
Books/Film API - Scholarly Provider Routes
================================================================================
  GET /api/scholarly/openalex/search         - OpenAlex works search
  GET /api/scholarly/openalex/works/<id>     - Work by OpenAlex id or URL
  GET /api/scholarly/crossref/search         - Crossref works search
  GET /api/scholarly/crossref/works/<doi>    - Work by DOI (slashes allowed)

`summary=true` on the search endpoints returns condensed records.
================================================================================
"""

from flask import Blueprint, jsonify, request

from bookfilm_app.search.formatters import format_crossref_response, format_openalex_response
from .common import get_services, run_async
from .validators import optional_bool, optional_int, optional_string

scholarly_bp = Blueprint('scholarly_api', __name__, url_prefix='/api/scholarly')


@scholarly_bp.route('/openalex/search')
def openalex_search():
    args = request.args
    data = run_async(get_services().registry.openalex.search_works(
        search=optional_string(args, 'search'),
        filter=optional_string(args, 'filter', max_length=2000),
        per_page=optional_int(args, 'per_page', minimum=1, maximum=200),
        page=optional_int(args, 'page', minimum=1),
    ))
    if optional_bool(args, 'summary'):
        data = format_openalex_response(data)
    return jsonify(data)


@scholarly_bp.route('/openalex/works/<path:work_id>')
def openalex_work(work_id: str):
    return jsonify(run_async(get_services().registry.openalex.get_work(work_id)))


@scholarly_bp.route('/crossref/search')
def crossref_search():
    args = request.args
    data = run_async(get_services().registry.crossref.search_works(
        query=optional_string(args, 'query'),
        query_bibliographic=optional_string(args, 'title'),
        query_author=optional_string(args, 'author'),
        filter=optional_string(args, 'filter', max_length=2000),
        rows=optional_int(args, 'rows', minimum=1, maximum=1000),
        offset=optional_int(args, 'offset', minimum=0),
    ))
    if optional_bool(args, 'summary'):
        data = format_crossref_response(data)
    return jsonify(data)


@scholarly_bp.route('/crossref/works/<path:doi>')
def crossref_work(doi: str):
    return jsonify(run_async(get_services().registry.crossref.get_work_by_doi(doi)))
