"""Match orchestration engine.

MatchEngine owns every live session, the matchmaking queue and all
in-flight matches. All state changes happen under one lock; outbound
events are collected while the lock is held and delivered after it is
released, and sink calls (history, stats, rankings) run last, so a slow
socket or database never stalls other matches.

Match lifecycle: in_progress -> finished -> removed. A match only exists
once two sessions have been paired, so there is no waiting state.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from arena import messages
from .matchmaking import MatchmakingQueue
from .outcome import CELL_COUNT, O, X, empty_board, evaluate, other
from .registry import ConnectionRegistry, Session
from .sink import MatchSummary, RankingSink, SinkError, result_for

logger = logging.getLogger(__name__)

IN_PROGRESS = 'in_progress'
FINISHED = 'finished'
REMOVED = 'removed'


class TransportError(RuntimeError):
    """An outbound message could not be delivered."""


class Transport:
    """Carries one outbound event to one connection.

    ``target`` is the handle the session registered with, or its identity
    when it registered none.
    """

    def send(self, target: Any, event: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class Participant:
    identity: str
    name: str
    symbol: str


@dataclass
class Match:
    id: str
    x: Participant
    o: Participant
    board: List[Optional[str]] = field(default_factory=empty_board)
    turn: str = X
    outcome: Optional[str] = None
    move_count: int = 0
    state: str = IN_PROGRESS

    @property
    def participants(self) -> Tuple[Participant, Participant]:
        return self.x, self.o

    def participant(self, identity: str) -> Optional[Participant]:
        if self.x.identity == identity:
            return self.x
        if self.o.identity == identity:
            return self.o
        return None

    def opponent_of(self, identity: str) -> Participant:
        return self.o if self.x.identity == identity else self.x

    def summary(self) -> MatchSummary:
        return MatchSummary(
            match_id=self.id,
            player_x=self.x.name,
            player_o=self.o.name,
            outcome=self.outcome,
            board=tuple(self.board),
            move_count=self.move_count,
        )


Outbox = List[Tuple[str, Any]]


class MatchEngine:
    def __init__(self, sink: RankingSink, transport: Transport, leaderboard_limit: int = 50):
        self.sink = sink
        self.transport = transport
        self.leaderboard_limit = leaderboard_limit
        self.registry = ConnectionRegistry()
        self.queue = MatchmakingQueue()
        self.matches: Dict[str, Match] = {}
        self._lock = threading.Lock()

    # ---- connection lifecycle ----

    def connect(self, identity: str, handle: Any = None) -> Session:
        with self._lock:
            session = self.registry.register(identity, handle)
        logger.info("[connect] session=%s", identity)
        self._deliver([(identity, messages.Connected(session_id=identity))])
        return session

    def authenticate(self, identity: str, username: Optional[str] = None) -> bool:
        name = (username or '').strip() or f"Player_{identity[-6:]}"
        with self._lock:
            session = self.registry.bind(identity, name)
        if session is None:
            logger.warning("[auth-unknown] session=%s", identity)
            return False
        logger.info("[auth] session=%s username=%s", identity, name)
        try:
            self.sink.ensure_player(name)
        except SinkError:
            logger.exception("[sink-error] op=ensure_player username=%s", name)
        self.send_leaderboard(identity)
        return True

    def on_disconnect(self, identity: str) -> None:
        outbox: Outbox = []
        with self._lock:
            session = self.registry.lookup(identity)
            if session is None:
                return
            if self.queue.remove(identity):
                logger.info("[queue-leave] session=%s reason=disconnect", identity)
            match = self.matches.get(session.match_id) if session.match_id else None
            if match is not None:
                opponent = match.opponent_of(identity)
                if opponent.identity in self.registry:
                    outbox.append((opponent.identity, messages.OpponentDisconnected()))
                self._remove_match(match)
                logger.info("[match-abandoned] match=%s by=%s", match.id, identity)
            self.registry.unregister(identity)
        logger.info("[disconnect] session=%s", identity)
        self._deliver(outbox)

    # ---- matchmaking ----

    def start_matchmaking(self, identity: str) -> Optional[Match]:
        """Queue the session and pair the two oldest waiters if possible."""
        outbox: Outbox = []
        match = None
        with self._lock:
            session = self.registry.lookup(identity)
            if session is None:
                return None
            if not session.authenticated:
                outbox.append((identity, messages.Error('Not authenticated')))
            elif session.match_id is not None:
                outbox.append((identity, messages.Error('Already in a match')))
            else:
                if self.queue.enqueue(identity):
                    logger.info("[queue-join] session=%s depth=%d", identity, len(self.queue))
                pair = self.queue.dequeue_pair()
                if pair is not None:
                    match = self._create_match(pair[0], pair[1], outbox)
        self._deliver(outbox)
        return match

    def cancel_matchmaking(self, identity: str) -> bool:
        with self._lock:
            removed = self.queue.remove(identity)
        if removed:
            logger.info("[queue-leave] session=%s reason=cancel", identity)
        return removed

    def _create_match(self, first: str, second: str, outbox: Outbox) -> Match:
        a = self.registry.lookup(first)
        b = self.registry.lookup(second)
        match = Match(
            id=f"match_{uuid.uuid4().hex}",
            x=Participant(a.identity, a.display_name, X),
            o=Participant(b.identity, b.display_name, O),
        )
        self.matches[match.id] = match
        a.match_id = match.id
        b.match_id = match.id
        for p in match.participants:
            outbox.append((p.identity, messages.MatchFound(
                match_id=match.id,
                player_symbol=p.symbol,
                opponent_id=match.opponent_of(p.identity).identity,
            )))
        logger.info("[match-created] match=%s x=%s o=%s", match.id, a.display_name, b.display_name)
        return match

    # ---- gameplay ----

    def _rejection(self, match: Optional[Match], identity: str, cell_index: Any) -> Optional[str]:
        if match is None:
            return 'match-not-found'
        player = match.participant(identity)
        if player is None:
            return 'not-a-participant'
        if match.outcome is not None:
            return 'match-over'
        if player.symbol != match.turn:
            return 'not-your-turn'
        if not isinstance(cell_index, int) or isinstance(cell_index, bool) \
                or not 0 <= cell_index < CELL_COUNT:
            return 'out-of-range'
        if match.board[cell_index] is not None:
            return 'cell-occupied'
        return None

    def apply_move(self, identity: str, match_id: str, cell_index: int) -> bool:
        """Apply one move. Returns False, with no state change and nothing
        broadcast, when the move is rejected."""
        outbox: Outbox = []
        summary = None
        with self._lock:
            match = self.matches.get(match_id)
            reason = self._rejection(match, identity, cell_index)
            if reason is not None:
                logger.info("[move-rejected] match=%s session=%s cell=%r reason=%s",
                            match_id, identity, cell_index, reason)
                return False

            symbol = match.participant(identity).symbol
            match.board[cell_index] = symbol
            match.move_count += 1
            match.turn = other(symbol)
            outcome = evaluate(match.board)
            logger.info("[move] match=%s symbol=%s cell=%d", match.id, symbol, cell_index)

            recipients = self._registered(match)
            board = tuple(match.board)
            if outcome is None:
                for pid in recipients:
                    outbox.append((pid, messages.GameUpdate(board=board, current_turn=match.turn)))
            else:
                match.outcome = outcome
                match.state = FINISHED
                for pid in recipients:
                    outbox.append((pid, messages.GameEnd(winner=outcome, board=board)))
                summary = match.summary()
                self._remove_match(match)
                logger.info("[match-finished] match=%s outcome=%s moves=%d",
                            match.id, outcome, match.move_count)

        self._deliver(outbox)
        if summary is not None:
            self._report(summary, match)
        return True

    def leave_match(self, identity: str, match_id: str) -> bool:
        outbox: Outbox = []
        with self._lock:
            match = self.matches.get(match_id)
            if match is None or match.participant(identity) is None:
                return False
            opponent = match.opponent_of(identity)
            if opponent.identity in self.registry:
                outbox.append((opponent.identity, messages.OpponentLeft()))
            self._remove_match(match)
        logger.info("[match-left] match=%s by=%s", match_id, identity)
        self._deliver(outbox)
        return True

    def _remove_match(self, match: Match) -> None:
        for p in match.participants:
            session = self.registry.lookup(p.identity)
            if session is not None and session.match_id == match.id:
                session.match_id = None
        self.matches.pop(match.id, None)
        match.state = REMOVED

    def _registered(self, match: Match) -> List[str]:
        return [p.identity for p in match.participants if p.identity in self.registry]

    # ---- results and rankings ----

    def _report(self, summary: MatchSummary, match: Match) -> None:
        try:
            self.sink.append_history(summary)
        except SinkError:
            logger.exception("[sink-error] op=append_history match=%s", summary.match_id)

        for p in match.participants:
            result = result_for(p.symbol, summary.outcome)
            try:
                self.sink.record_result(p.name, result)
            except SinkError:
                logger.exception("[sink-error] op=record_result username=%s result=%s", p.name, result)

        entries = self._rankings()
        with self._lock:
            recipients = self._registered(match)
        self._deliver([(pid, messages.LeaderboardUpdate(entries=entries)) for pid in recipients])

    def _rankings(self) -> List[Dict]:
        # An unreachable store reads as an empty board; clients still get an update
        try:
            return self.sink.top_rankings(self.leaderboard_limit)
        except SinkError:
            logger.exception("[sink-error] op=top_rankings")
            return []

    def send_leaderboard(self, identity: str) -> bool:
        entries = self._rankings()
        with self._lock:
            if identity not in self.registry:
                return False
        self._deliver([(identity, messages.LeaderboardUpdate(entries=entries))])
        return True

    # ---- delivery ----

    def _target(self, identity: str) -> Any:
        session = self.registry.lookup(identity)
        if session is None or session.handle is None:
            return identity
        return session.handle

    def _deliver(self, outbox: Outbox) -> None:
        if not outbox:
            return
        with self._lock:
            targets = {identity: self._target(identity) for identity, _ in outbox}
        dead = []
        for identity, message in outbox:
            try:
                self.transport.send(targets[identity], message.event, message.to_payload())
            except TransportError:
                logger.warning("[send-failed] session=%s event=%s", identity, message.event, exc_info=True)
                if identity not in dead:
                    dead.append(identity)
        for identity in dead:
            self.on_disconnect(identity)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'sessions': len(self.registry),
                'matches': len(self.matches),
                'queue': len(self.queue),
            }
