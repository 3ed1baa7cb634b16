"""
Attacking rules: is a square under attack, is a king in check, would a move leave your own king in check?

Attacks reuse the movement rules of moves.py, except for pawns:
a pawn pushes forward but attacks diagonally, and it attacks a diagonal square whether or not something stands there.
"""

from src.chess.board import Board
from src.chess.moves import is_geometry_legal, pawn_direction
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square


def pawn_attacks(piece: Piece, from_square: Square, target: Square) -> bool:
    """Pure diagonal adjacency in the pawn's forward direction (independent of what stands on the target)"""
    d_row = target.row - from_square.row
    d_col = target.col - from_square.col
    return d_row == pawn_direction(piece.color) and abs(d_col) == 1


def attacks_square(piece: Piece, from_square: Square, target: Square, board: Board) -> bool:
    """Could the piece standing on from_square take on the target square?"""
    if from_square == target:
        return False
    if piece.type == PieceType.PAWN:
        return pawn_attacks(piece, from_square, target)
    return is_geometry_legal(piece, from_square, target, board)


def is_square_attacked(square: Square, by_color: Color, board: Board) -> bool:
    """Is the square in the line-of-sight of any piece of the given color?"""
    for attacker_square in board.locate_color(by_color):
        attacker = board.piece_at(attacker_square)
        # for the type checker: locate_color only returns occupied squares
        assert attacker is not None
        if attacks_square(attacker, attacker_square, square, board):
            return True
    return False


def is_in_check(color: Color, board: Board) -> bool:
    """The king of the given color is attacked by the opponent. (A board without that king is never in check)"""
    king_square = board.king_square(color)
    if king_square is None:
        return False
    return is_square_attacked(king_square, color.opponent, board)


def would_expose_king(
    from_square: Square, to_square: Square, mover: Color, board: Board
) -> bool:
    """
    Return True if the move puts (or leaves) the mover's own king in check

    plan:
    1. make the candidate move on the board (the king cache follows if the king itself moves)
    2. determine if the mover's king is attacked
    3. restore the board (trial_move guarantees this, even if something raises)
    """
    with board.trial_move(from_square, to_square) as trial_board:
        return is_in_check(mover, trial_board)
