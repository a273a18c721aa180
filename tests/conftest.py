import os
import sys
import pytest

# Ensure the project root (containing the `arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from arena import create_app, db, socketio
from arena.services.match.engine import MatchEngine, Transport, TransportError
from arena.services.match.sink import RankingSink, SinkError

NAMESPACE = '/ws'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ALLOWED_ORIGINS = []
    SOCKETIO_NAMESPACE = NAMESPACE
    LEADERBOARD_LIMIT = 50
    HISTORY_LIMIT = 20
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import arena.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    """Builds Socket.IO test clients on the game namespace; all are
    disconnected at teardown."""
    made = []

    def make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=NAMESPACE,
        )
        made.append(test_client)
        return test_client

    yield make
    for test_client in made:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except Exception:
            pass


# ---- engine doubles ----

class RecordingTransport(Transport):
    def __init__(self):
        self.sent = []
        self.broken = set()

    def send(self, identity, event, payload):
        if identity in self.broken:
            raise TransportError(f"connection {identity} is closed")
        self.sent.append((identity, event, payload))

    def events_for(self, identity, event=None):
        return [
            (e, p) if event is None else p
            for i, e, p in self.sent
            if i == identity and (event is None or e == event)
        ]

    def clear(self):
        self.sent.clear()


class RecordingSink(RankingSink):
    def __init__(self):
        self.players = []
        self.results = []
        self.history = []
        self.failing = False
        self.rankings = [{'username': 'alice', 'wins': 1, 'losses': 0, 'rank': 1}]

    def _check(self):
        if self.failing:
            raise SinkError('store unavailable')

    def ensure_player(self, username):
        self._check()
        self.players.append(username)

    def record_result(self, username, result):
        self._check()
        self.results.append((username, result))

    def append_history(self, summary):
        self._check()
        self.history.append(summary)

    def top_rankings(self, limit):
        self._check()
        return list(self.rankings[:limit])


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def sink():
    return RecordingSink()


@pytest.fixture()
def engine(sink, transport):
    return MatchEngine(sink=sink, transport=transport)


@pytest.fixture()
def paired(engine, transport):
    """alice (X) and bob (O) in a fresh match; returns the match."""
    engine.connect('sid-alice')
    engine.connect('sid-bob')
    engine.authenticate('sid-alice', 'alice')
    engine.authenticate('sid-bob', 'bob')
    engine.start_matchmaking('sid-alice')
    match = engine.start_matchmaking('sid-bob')
    transport.clear()
    return match
