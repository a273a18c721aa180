from typing import List, Optional, Sequence, Tuple

X = 'X'
O = 'O'
DRAW = 'draw'

SYMBOLS = (X, O)
CELL_COUNT = 9

Board = List[Optional[str]]

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def empty_board() -> Board:
    return [None] * CELL_COUNT


def other(symbol: str) -> str:
    return O if symbol == X else X


def available_moves(board: Sequence[Optional[str]]) -> List[int]:
    """Empty cell indices in ascending order."""
    return [i for i, cell in enumerate(board) if cell is None]


def evaluate(board: Sequence[Optional[str]]) -> Optional[str]:
    """Classify a board.

    Returns 'X' or 'O' when that symbol holds one of the eight lines, 'draw'
    when every cell is marked and nobody holds a line, and None while the
    game is still open.
    """
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v is not None and v == board[b] == board[c]:
            return v
    if all(cell is not None for cell in board):
        return DRAW
    return None
