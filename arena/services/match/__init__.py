"""Match domain services: outcome evaluation, move selection, matchmaking
and the match orchestration engine.

Nothing in this package talks to Flask or Socket.IO directly. The engine
reaches the outside world only through the transport and sink objects handed
to it, so socket handlers and HTTP routes stay thin and the game rules stay
testable without a server.
"""

from .engine import MatchEngine
from .outcome import DRAW, O, X, evaluate

__all__ = ['MatchEngine', 'evaluate', 'X', 'O', 'DRAW']
