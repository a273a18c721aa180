"""Minimax opponent for offline and single-client play."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from .outcome import CELL_COUNT, DRAW, SYMBOLS, available_moves, evaluate, other

EASY = 'easy'
MEDIUM = 'medium'
HARD = 'hard'
DIFFICULTIES = (EASY, MEDIUM, HARD)

WIN_SCORE = 10

# (board, me, maximizing, depth) -> score
_SCORE_CACHE: Dict[Tuple[Tuple[Optional[str], ...], str, bool, int], int] = {}


def _score(board: Tuple[Optional[str], ...], me: str, maximizing: bool, depth: int) -> int:
    key = (board, me, maximizing, depth)
    cached = _SCORE_CACHE.get(key)
    if cached is not None:
        return cached

    result = evaluate(board)
    if result == me:
        value = WIN_SCORE - depth
    elif result == DRAW:
        value = 0
    elif result is not None:
        value = depth - WIN_SCORE
    else:
        mover = me if maximizing else other(me)
        scores = []
        for move in available_moves(board):
            child = board[:move] + (mover,) + board[move + 1:]
            scores.append(_score(child, me, not maximizing, depth + 1))
        value = max(scores) if maximizing else min(scores)

    _SCORE_CACHE[key] = value
    return value


def minimax_move(board: Sequence[Optional[str]], side: str) -> Optional[int]:
    """Best cell for ``side`` by exhaustive minimax.

    A win scores 10 minus its depth, a loss depth minus 10, a draw 0, with
    depth counted from the position right after the candidate move. Ties go
    to the lowest cell index.
    """
    cells = tuple(board)
    best_move: Optional[int] = None
    best_score = None
    for move in available_moves(cells):
        child = cells[:move] + (side,) + cells[move + 1:]
        score = _score(child, side, False, 0)
        if best_score is None or score > best_score:
            best_score, best_move = score, move
    return best_move


@dataclass
class MoveSelector:
    """Picks moves for one side at a fixed difficulty.

      - easy: uniform over empty cells
      - medium: coin flip between easy and hard, re-rolled on every call
      - hard: minimax_move
    """

    difficulty: str = HARD
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        if self.difficulty not in DIFFICULTIES:
            raise ValueError(f'Unknown difficulty: {self.difficulty!r}')

    def choose(self, board: Sequence[Optional[str]], side: str) -> Optional[int]:
        """Cell index to play, or None when the board is full."""
        if side not in SYMBOLS:
            raise ValueError(f'Unknown side: {side!r}')
        if len(board) != CELL_COUNT:
            raise ValueError(f'Board must have {CELL_COUNT} cells')

        moves = available_moves(board)
        if not moves:
            return None
        if self.difficulty == EASY:
            return self.rng.choice(moves)
        if self.difficulty == MEDIUM and self.rng.random() < 0.5:
            return self.rng.choice(moves)
        return minimax_move(board, side)


def select_move(board: Sequence[Optional[str]], side: str, difficulty: str = HARD,
                rng: Optional[random.Random] = None) -> Optional[int]:
    selector = MoveSelector(difficulty, rng) if rng is not None else MoveSelector(difficulty)
    return selector.choose(board, side)
