from flask import Blueprint, jsonify

from .common import get_services

main_bp = Blueprint('main_api', __name__)

SERVICE_NAME = 'books-film-api'


@main_bp.route('/api/health')
def health():
    """Service status with cache and rate-limiter statistics."""
    services = get_services()
    return jsonify({
        'status': 'ok',
        'service': SERVICE_NAME,
        'sources': services.registry.get_available_sources(),
        'cache': services.cache.stats(),
        'rate_limits': services.rate_limiter.stats(),
    })
