"""Main blueprint with health check endpoints."""
from flask import Blueprint, jsonify
from sqlalchemy import text
from storefront.database import get_session

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        503: Unhealthy (DB error)
    """
    try:
        session = get_session()
        row = session.execute(text("SELECT 1 AS health_check")).fetchone()

        if row and row[0] == 1:
            return jsonify({
                'success': True,
                'status': 'healthy',
                'database': 'connected',
            }), 200

        return jsonify({
            'success': False,
            'status': 'unhealthy',
            'database': 'error',
            'message': 'Unexpected query result'
        }), 503

    except Exception as e:
        return jsonify({
            'success': False,
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e),
            'message': 'Failed to connect to database'
        }), 503


@main_bp.route('/health/cache')
def health_cache():
    """
    Cache health check.

    Never returns an error status: the cache is optional and the store keeps
    working without it ("degraded").
    """
    from storefront.services.cache_service import get_cache
    try:
        cache = get_cache()
    except RuntimeError:
        cache = None

    if cache is not None and cache.is_available():
        return jsonify({'success': True, 'status': 'ok', 'cache': 'connected'}), 200
    return jsonify({'success': True, 'status': 'degraded', 'cache': 'unavailable'}), 200
