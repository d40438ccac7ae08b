"""Main blueprint: service info and health check."""
from flask import Blueprint, jsonify
from kalkyle.database import ping

main_bp = Blueprint('main', __name__)

SERVICE_NAME = 'Kalkyle API'
SERVICE_VERSION = '1.0.0'


@main_bp.route('/')
def index():
    """Service info."""
    return jsonify({
        'name': SERVICE_NAME,
        'version': SERVICE_VERSION,
        'endpoints': ['/auth', '/quotes', '/categories', '/cost-items', '/calculations', '/settings', '/health']
    })


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        if ping():
            return jsonify({
                'status': 'healthy',
                'database': 'connected'
            }), 200
        return jsonify({
            'status': 'unhealthy',
            'database': 'error',
            'message': 'Unexpected query result'
        }), 500
    except Exception as e:
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e)
        }), 500
