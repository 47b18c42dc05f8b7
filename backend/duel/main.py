from flask import Blueprint, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the duel match server!'})


@main.route('/health')
def health():
    """Liveness check for monitoring; carries no session state."""
    return jsonify({'status': 'ok'}), 200


@main.app_errorhandler(404)
def not_found(err):
    return jsonify({'error': 'Not found'}), 404


@main.app_errorhandler(500)
def internal_error(err):
    return jsonify({'error': 'Something broke!'}), 500
