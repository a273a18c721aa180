from flask import Blueprint, current_app, jsonify, request

from arena.models import GameRecord, Player
from arena.services.match.sink import SinkError

players = Blueprint('players', __name__)


def _limit_arg(default, maximum=100):
    try:
        limit = int(request.args.get('limit', default))
    except (TypeError, ValueError):
        return None
    if limit < 1:
        return None
    return min(limit, maximum)


@players.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    """
    Returns the current rankings, the same entries sent in leaderboard_update.
    """
    limit = _limit_arg(current_app.config.get('LEADERBOARD_LIMIT', 50))
    if limit is None:
        return jsonify({'error': 'limit must be a positive integer'}), 400
    sink = current_app.extensions['match_engine'].sink
    try:
        entries = sink.top_rankings(limit)
    except SinkError:
        current_app.logger.exception("[leaderboard] ranking query failed")
        return jsonify({'error': 'Leaderboard unavailable'}), 503
    return jsonify({'entries': entries})


@players.route('/players/<string:username>', methods=['GET'])
def get_player(username):
    player = Player.query.filter_by(username=username).first()
    if not player:
        return jsonify({'error': 'Player not found'}), 404
    return jsonify(player.to_dict())


@players.route('/history', methods=['GET'])
def get_history():
    """
    Returns the most recently completed matches, newest first.
    """
    limit = _limit_arg(current_app.config.get('HISTORY_LIMIT', 20))
    if limit is None:
        return jsonify({'error': 'limit must be a positive integer'}), 400
    records = (
        GameRecord.query
        .order_by(GameRecord.created_at.desc(), GameRecord.id.desc())
        .limit(limit)
        .all()
    )
    return jsonify([r.to_dict() for r in records])
