from flask import Blueprint, current_app, jsonify, request

from arena.services.match.ai import DIFFICULTIES, HARD, MoveSelector
from arena.services.match.outcome import CELL_COUNT, SYMBOLS, evaluate

ai = Blueprint('ai', __name__)


def _parse_board(cells):
    # Clients send null or '' for empty cells
    if not isinstance(cells, list) or len(cells) != CELL_COUNT:
        return None
    board = []
    for cell in cells:
        if cell is None or cell == '':
            board.append(None)
        elif cell in SYMBOLS:
            board.append(cell)
        else:
            return None
    return board


@ai.route('/move', methods=['POST'])
def choose_move():
    """
    Picks the computer's move for offline play.
    Body: {board: [9 cells], side: 'X' | 'O', difficulty: 'easy' | 'medium' | 'hard'}
    """
    data = request.get_json(silent=True) or {}
    board = _parse_board(data.get('board'))
    if board is None:
        return jsonify({'error': f'board must be a list of {CELL_COUNT} cells (null, "X" or "O")'}), 400
    side = data.get('side')
    if side not in SYMBOLS:
        return jsonify({'error': 'side must be "X" or "O"'}), 400
    difficulty = data.get('difficulty') or HARD
    if difficulty not in DIFFICULTIES:
        return jsonify({'error': f'difficulty must be one of {", ".join(DIFFICULTIES)}'}), 400
    if evaluate(board) is not None:
        return jsonify({'error': 'Game is already over'}), 400

    move = MoveSelector(difficulty).choose(board, side)
    current_app.logger.info(f"[ai-move] side={side} difficulty={difficulty} cell={move}")
    return jsonify({'cellIndex': move})
