"""
================================================================================
Books/Film API - Film Provider Routes
================================================================================
  GET /api/film/tmdb/search        - TMDb movie search
  GET /api/film/tmdb/movies/<id>   - TMDb movie details
  GET /api/film/omdb/search        - OMDb title search
  GET /api/film/omdb/title         - OMDb lookup by IMDb id or exact title
================================================================================
"""

from flask import Blueprint, jsonify, request

from sources.base import SearchPreconditionError
from .common import get_services, run_async
from .validators import choice, optional_bool, optional_int, optional_string, required_string

film_bp = Blueprint('film_api', __name__, url_prefix='/api/film')


@film_bp.route('/tmdb/search')
def tmdb_search():
    args = request.args
    return jsonify(run_async(get_services().registry.tmdb.search_movie(
        required_string(args, 'query'),
        year=optional_int(args, 'year'),
        language=optional_string(args, 'language'),
        page=optional_int(args, 'page', minimum=1),
        include_adult=optional_bool(args, 'include_adult'),
    )))


@film_bp.route('/tmdb/movies/<movie_id>')
def tmdb_movie(movie_id: str):
    return jsonify(run_async(get_services().registry.tmdb.get_movie(
        movie_id,
        append_to_response=optional_string(request.args, 'append_to_response'),
    )))


@film_bp.route('/omdb/search')
def omdb_search():
    args = request.args
    return jsonify(run_async(get_services().registry.omdb.search(
        required_string(args, 'title'),
        year=optional_int(args, 'year'),
        type=choice(args, 'type', ('movie', 'series', 'episode')),
        page=optional_int(args, 'page', minimum=1),
    )))


@film_bp.route('/omdb/title')
def omdb_title():
    args = request.args
    imdb_id = optional_string(args, 'imdb_id')
    title = optional_string(args, 'title')
    if not (imdb_id or title):
        raise SearchPreconditionError("Provide imdb_id or title")
    return jsonify(run_async(get_services().registry.omdb.by_id(
        imdb_id=imdb_id,
        title=title,
        year=optional_int(args, 'year'),
        plot=choice(args, 'plot', ('short', 'full')),
    )))
