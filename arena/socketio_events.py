import logging
from dataclasses import dataclass

from flask import current_app, request
from flask_socketio import emit

from arena import socketio
from arena.messages import (
    COMMANDS,
    Authenticate,
    CancelMatchmaking,
    GetLeaderboard,
    LeaveMatch,
    MakeMove,
    ProtocolError,
    StartMatchmaking,
    parse_command,
)
from arena.services.match.engine import Transport, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SocketHandle:
    """Where a session's connection lives: its sid on one namespace."""
    sid: str
    namespace: str


class SocketIOTransport(Transport):
    """Delivers engine events to one Socket.IO connection."""

    def __init__(self, sio, namespace):
        self.socketio = sio
        self.namespace = namespace

    def send(self, target, event, payload):
        if isinstance(target, SocketHandle):
            sid, namespace = target.sid, target.namespace
        else:
            sid, namespace = target, self.namespace
        try:
            # socketio.emit rather than flask_socketio.emit: this may run
            # outside the sender's request context
            self.socketio.emit(event, payload, to=sid, namespace=namespace)
        except Exception as exc:
            raise TransportError(f"emit {event} to {sid} failed") from exc


def _engine():
    return current_app.extensions['match_engine']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    sid = _get_sid()
    _engine().connect(sid, handle=SocketHandle(sid, request.namespace))


def handle_disconnect(reason=None):
    _engine().on_disconnect(_get_sid())


def dispatch(kind, data=None):
    """Parse one inbound command and hand it to the engine."""
    sid = _get_sid()
    try:
        command = parse_command(kind, data)
    except ProtocolError as exc:
        logger.warning("[protocol-error] session=%s kind=%s error=%s", sid, kind, exc)
        emit('error', {'message': str(exc)})
        return

    engine = _engine()
    if isinstance(command, Authenticate):
        engine.authenticate(sid, command.username)
    elif isinstance(command, StartMatchmaking):
        engine.start_matchmaking(sid)
    elif isinstance(command, CancelMatchmaking):
        engine.cancel_matchmaking(sid)
    elif isinstance(command, MakeMove):
        engine.apply_move(sid, command.match_id, command.cell_index)
    elif isinstance(command, LeaveMatch):
        engine.leave_match(sid, command.match_id)
    elif isinstance(command, GetLeaderboard):
        engine.send_leaderboard(sid)


def _command_handler(kind):
    def handler(data=None):
        dispatch(kind, data)
    handler.__name__ = f"handle_{kind}"
    return handler


def handle_unknown(event, data=None):
    # Catch-all: only reached for events with no named handler
    dispatch(event, data)


def register_socketio_handlers(namespace='/ws') -> None:
    """Register the game contract on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for kind in COMMANDS:
        socketio.on_event(kind, _command_handler(kind), namespace=namespace)
    socketio.on_event('*', handle_unknown, namespace=namespace)
