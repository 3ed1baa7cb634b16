"""
Legal move generation: combine the movement rules (moves.py) with the check rules (attacks.py).

NOTE: The order of the generated moves is part of the contract. Moves are listed row-major by origin square,
then row-major by destination square. The computer opponent truncates / indexes into this list.
"""

from src.chess.attacks import would_expose_king
from src.chess.board import Board
from src.chess.moves import Move, is_geometry_legal
from src.chess.pieces import Color
from src.chess.square import Square


def is_valid_move(
    from_square: Square, to_square: Square, mover: Color, board: Board
) -> bool:
    """
    A move is valid when
    ----

    * it is not the null move
    * both squares are on the board (anything out of range is simply not valid)
    * the origin holds one of the mover's pieces
    * the destination is empty or holds an opponent's piece
    * the piece's movement pattern allows it
    * it does not leave the mover's own king in check
    """
    if from_square == to_square:
        return False
    if not (from_square.is_within_bounds() and to_square.is_within_bounds()):
        return False

    piece = board.piece_at(from_square)
    if piece is None or piece.color != mover:
        return False

    target = board.piece_at(to_square)
    if target is not None and target.color == mover:
        return False

    if not is_geometry_legal(piece, from_square, to_square, board):
        return False

    return not would_expose_king(from_square, to_square, mover, board)


def legal_destinations(square: Square, color: Color, board: Board) -> list[Square]:
    """Squares the piece on the given square may legally move to (row-major). Used to highlight a selected piece."""
    return [
        to_square
        for to_square in board.squares()
        if is_valid_move(square, to_square, color, board)
    ]


def legal_moves(color: Color, board: Board) -> list[Move]:
    """
    List of legal moves for the player with the 'color' pieces
    ----

    Full cross product of origin and destination squares, filtered by `is_valid_move`.
    O(64^2) geometry checks: fine for a single position, not for deep search.
    """
    moves: list[Move] = []
    for from_square in board.locate_color(color):
        for to_square in legal_destinations(from_square, color, board):
            moves.append(Move.from_board(from_square, to_square, board))
    return moves
