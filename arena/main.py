from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Tic-Tac-Toe Arena server!'})


@main.route('/health')
def health():
    """Process-wide counts for monitoring. Read-only."""
    stats = current_app.extensions['match_engine'].stats()
    return jsonify({'status': 'ok', **stats})
