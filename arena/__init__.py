import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    logging.basicConfig(
        level=flask_app.config.get('LOG_LEVEL', 'INFO'),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS', [])
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    if flask_app.config.get('AUTO_CREATE_TABLES'):
        from arena import models  # noqa: F401
        with flask_app.app_context():
            db.create_all()

    from arena.main import main
    flask_app.register_blueprint(main)

    from arena.api.players import players
    flask_app.register_blueprint(players, url_prefix='/api')

    from arena.api.ai import ai
    flask_app.register_blueprint(ai, url_prefix='/api/ai')

    # One engine per app instance; handlers reach it through app.extensions
    from arena.services.match import MatchEngine
    from arena.services.ranking import SqlAlchemySink
    from arena.socketio_events import SocketIOTransport, register_socketio_handlers

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    flask_app.extensions['match_engine'] = MatchEngine(
        sink=SqlAlchemySink(flask_app),
        transport=SocketIOTransport(socketio, namespace),
        leaderboard_limit=int(flask_app.config.get('LEADERBOARD_LIMIT', 50)),
    )
    register_socketio_handlers(namespace)

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the player and game history tables."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
        click.echo('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
