from datetime import datetime, timezone
import json

from arena import db


def _utcnow():
    return datetime.now(timezone.utc)


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    wins = db.Column(db.Integer, default=0, nullable=False)
    losses = db.Column(db.Integer, default=0, nullable=False)
    draws = db.Column(db.Integer, default=0, nullable=False)
    games_played = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow)
    last_active = db.Column(db.DateTime, default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'wins': self.wins,
            'losses': self.losses,
            'draws': self.draws,
            'games_played': self.games_played,
            'last_active': self.last_active.isoformat() if self.last_active else None,
        }


class GameRecord(db.Model):
    __tablename__ = 'game_history'
    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.String(100), nullable=False, index=True)
    player_x_username = db.Column(db.String(64), nullable=False)
    player_o_username = db.Column(db.String(64), nullable=False)
    winner = db.Column(db.String(8), nullable=False)  # X, O or draw
    board = db.Column(db.Text, nullable=False)  # JSON-encoded list of 9 cells
    moves_count = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'match_id': self.match_id,
            'player_x': self.player_x_username,
            'player_o': self.player_o_username,
            'winner': self.winner,
            'board': json.loads(self.board) if self.board else None,
            'moves_count': self.moves_count,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
