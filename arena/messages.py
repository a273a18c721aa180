"""Socket message contract.

Every inbound command and outbound event has its own dataclass. Inbound
payloads are parsed at the socket boundary with parse_command; anything that
does not match a known command raises ProtocolError before it reaches the
engine. Outbound events serialize with to_payload and are emitted under
their ``event`` name.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional


class ProtocolError(ValueError):
    """Malformed or unknown inbound message."""


def _require_mapping(data: Any) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ProtocolError('Payload must be an object')
    return data


def _require_match_id(data: Dict[str, Any]) -> str:
    match_id = data.get('matchId')
    if not isinstance(match_id, str) or not match_id:
        raise ProtocolError('matchId is required')
    return match_id


# ---- inbound ----

@dataclass(frozen=True)
class Authenticate:
    kind: ClassVar[str] = 'authenticate'
    username: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        username = _require_mapping(data).get('username')
        if username is not None and not isinstance(username, str):
            raise ProtocolError('username must be a string')
        return cls(username=username)


@dataclass(frozen=True)
class StartMatchmaking:
    kind: ClassVar[str] = 'start_matchmaking'

    @classmethod
    def from_payload(cls, data):
        _require_mapping(data)
        return cls()


@dataclass(frozen=True)
class CancelMatchmaking:
    kind: ClassVar[str] = 'cancel_matchmaking'

    @classmethod
    def from_payload(cls, data):
        _require_mapping(data)
        return cls()


@dataclass(frozen=True)
class MakeMove:
    kind: ClassVar[str] = 'make_move'
    match_id: str
    cell_index: int

    @classmethod
    def from_payload(cls, data):
        data = _require_mapping(data)
        match_id = _require_match_id(data)
        cell_index = data.get('cellIndex')
        # bool is an int subclass; True is not a cell
        if not isinstance(cell_index, int) or isinstance(cell_index, bool):
            raise ProtocolError('cellIndex must be an integer')
        return cls(match_id=match_id, cell_index=cell_index)


@dataclass(frozen=True)
class LeaveMatch:
    kind: ClassVar[str] = 'leave_match'
    match_id: str

    @classmethod
    def from_payload(cls, data):
        return cls(match_id=_require_match_id(_require_mapping(data)))


@dataclass(frozen=True)
class GetLeaderboard:
    kind: ClassVar[str] = 'get_leaderboard'

    @classmethod
    def from_payload(cls, data):
        _require_mapping(data)
        return cls()


COMMANDS = {
    cmd.kind: cmd
    for cmd in (Authenticate, StartMatchmaking, CancelMatchmaking, MakeMove, LeaveMatch, GetLeaderboard)
}


def parse_command(kind: str, data: Any):
    """Build the command dataclass for ``kind`` from its payload."""
    command = COMMANDS.get(kind)
    if command is None:
        raise ProtocolError(f'Unknown command: {kind}')
    return command.from_payload(data)


# ---- outbound ----

@dataclass(frozen=True)
class Connected:
    event: ClassVar[str] = 'connected'
    session_id: str
    message: str = 'Connected'

    def to_payload(self) -> Dict[str, Any]:
        return {'message': self.message, 'sessionId': self.session_id}


@dataclass(frozen=True)
class LeaderboardUpdate:
    event: ClassVar[str] = 'leaderboard_update'
    entries: List[Dict[str, Any]] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {'entries': [dict(e) for e in self.entries]}


@dataclass(frozen=True)
class MatchFound:
    event: ClassVar[str] = 'match_found'
    match_id: str
    player_symbol: str
    opponent_id: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            'matchId': self.match_id,
            'playerSymbol': self.player_symbol,
            'opponentId': self.opponent_id,
        }


@dataclass(frozen=True)
class GameUpdate:
    event: ClassVar[str] = 'game_update'
    board: tuple
    current_turn: str

    def to_payload(self) -> Dict[str, Any]:
        return {'board': list(self.board), 'currentTurn': self.current_turn}


@dataclass(frozen=True)
class GameEnd:
    event: ClassVar[str] = 'game_end'
    winner: str
    board: tuple

    def to_payload(self) -> Dict[str, Any]:
        return {'winner': self.winner, 'board': list(self.board)}


@dataclass(frozen=True)
class OpponentLeft:
    event: ClassVar[str] = 'opponent_left'

    def to_payload(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class OpponentDisconnected:
    event: ClassVar[str] = 'opponent_disconnected'

    def to_payload(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class Error:
    event: ClassVar[str] = 'error'
    message: str

    def to_payload(self) -> Dict[str, Any]:
        return {'message': self.message}

