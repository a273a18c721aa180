"""SQLAlchemy-backed ranking and history sink."""

import json
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from arena import db
from arena.models import GameRecord, Player
from arena.services.match.outcome import DRAW
from arena.services.match.sink import LOSS, WIN, RankingSink, SinkError


class SqlAlchemySink(RankingSink):
    """Writes player counters and game history through Flask-SQLAlchemy.

    Every call runs in its own app context so the engine can use it from
    socket handlers and background tasks alike. Failures roll back the
    session and surface as SinkError.
    """

    def __init__(self, app):
        self.app = app

    def _get_or_create(self, username):
        player = Player.query.filter_by(username=username).first()
        if player is None:
            player = Player(username=username, wins=0, losses=0, draws=0, games_played=0)
            db.session.add(player)
        return player

    def ensure_player(self, username):
        with self.app.app_context():
            try:
                player = self._get_or_create(username)
                player.last_active = datetime.now(timezone.utc)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise SinkError(f"ensure_player failed for {username}") from exc

    def record_result(self, username, result):
        if result not in (WIN, LOSS, DRAW):
            raise ValueError(f"Unknown result: {result!r}")
        with self.app.app_context():
            try:
                player = self._get_or_create(username)
                if result == WIN:
                    player.wins += 1
                elif result == LOSS:
                    player.losses += 1
                else:
                    player.draws += 1
                player.games_played += 1
                player.last_active = datetime.now(timezone.utc)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise SinkError(f"record_result failed for {username}") from exc
        self.app.logger.info(f"[sink] updated {username}: {result}")

    def append_history(self, summary):
        with self.app.app_context():
            try:
                db.session.add(GameRecord(
                    match_id=summary.match_id,
                    player_x_username=summary.player_x,
                    player_o_username=summary.player_o,
                    winner=summary.outcome,
                    board=json.dumps(list(summary.board)),
                    moves_count=summary.move_count,
                ))
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise SinkError(f"append_history failed for {summary.match_id}") from exc
        self.app.logger.info(f"[sink] saved history for {summary.match_id}")

    def top_rankings(self, limit):
        with self.app.app_context():
            try:
                rows = (
                    Player.query
                    .filter(Player.games_played > 0)
                    .order_by(
                        Player.wins.desc(),
                        Player.losses.asc(),
                        Player.games_played.desc(),
                        Player.username.asc(),
                    )
                    .limit(limit)
                    .all()
                )
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise SinkError("top_rankings failed") from exc
            return [
                {'username': p.username, 'wins': p.wins, 'losses': p.losses, 'rank': i}
                for i, p in enumerate(rows, start=1)
            ]
