import logging
import time
import uuid
from typing import Optional

import httpx
from flask import Flask, g, jsonify, request

from sources.base import SearchPreconditionError
from sources.http_client import FetchError

from .config import Settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
    """
    Create and configure an instance of the Flask application.

    Args:
        settings: Runtime configuration (default: Settings.from_env())
        transport: Optional httpx transport for every outbound request
    """
    if settings is None:
        settings = Settings.from_env()

    app = Flask(__name__)

    # =============================================================================
    # CONFIGURATION
    # =============================================================================
    app.config.from_mapping(
        HOST=settings.host,
        PORT=settings.port,
        DEBUG=settings.debug,
    )
    app.json.sort_keys = False

    # =============================================================================
    # LOGGING
    # =============================================================================
    from .log import configure_logging, log
    configure_logging(settings.log_level, settings.log_file)

    @app.before_request
    def assign_request_id():
        g.request_id = uuid.uuid4().hex[:12]
        g.request_start = time.time()

    @app.after_request
    def request_log(response):
        start_time = getattr(g, 'request_start', None)
        duration_ms = int((time.time() - start_time) * 1000) if start_time else None
        logger.debug(
            f"[{getattr(g, 'request_id', '-')}] {request.method} {request.path} "
            f"-> {response.status_code} ({duration_ms}ms)"
        )
        return response

    # =============================================================================
    # ERROR HANDLERS
    # =============================================================================
    @app.errorhandler(SearchPreconditionError)
    def handle_precondition(error):
        return jsonify({'error': str(error), 'code': 'invalid_request'}), 400

    @app.errorhandler(FetchError)
    def handle_fetch_error(error):
        logger.warning(f"Upstream request failed: {error}")
        return jsonify({'error': str(error), 'status': error.status}), 502

    # =============================================================================
    # SERVICES
    # =============================================================================
    from .extensions import build_services
    services = build_services(settings, transport=transport)
    app.extensions['bookfilm'] = services

    # =============================================================================
    # BLUEPRINTS & ROUTES
    # =============================================================================
    from .routes.main_api import main_bp
    from .routes.books_api import books_bp
    from .routes.scholarly_api import scholarly_bp
    from .routes.film_api import film_bp
    from .routes.search_api import search_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(books_bp)
    app.register_blueprint(scholarly_bp)
    app.register_blueprint(film_bp)
    app.register_blueprint(search_bp)

    log(f"Loaded {len(services.registry.sources)} sources: {', '.join(services.registry.sources)}")

    return app

# App instance should be created by the caller (run.py or WSGI entrypoint)
