from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .outcome import DRAW

WIN = 'win'
LOSS = 'loss'
RESULTS = (WIN, LOSS, DRAW)


class SinkError(RuntimeError):
    """The ranking/history store failed an operation."""


@dataclass(frozen=True)
class MatchSummary:
    match_id: str
    player_x: str
    player_o: str
    outcome: str
    board: Tuple[Optional[str], ...]
    move_count: int


def result_for(symbol: str, outcome: str) -> str:
    """Individual result of the player holding ``symbol`` given the match outcome."""
    if outcome == DRAW:
        return DRAW
    return WIN if outcome == symbol else LOSS


class RankingSink:
    """Durable player counters and completed-game records.

    Implementations raise SinkError on failure; the engine logs it and keeps
    the in-memory outcome.
    """

    def ensure_player(self, username: str) -> None:
        raise NotImplementedError

    def record_result(self, username: str, result: str) -> None:
        raise NotImplementedError

    def append_history(self, summary: MatchSummary) -> None:
        raise NotImplementedError

    def top_rankings(self, limit: int) -> List[Dict]:
        raise NotImplementedError
