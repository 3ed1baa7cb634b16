"""
Geometry/Base movement rules

Key idea: Use strategy pattern to define the movement pattern of each piece type.

Whether a move would leave your own king in check is checked later (see attacks.py / generator.py)
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Self

from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square


class Board(Protocol):
    """Just the parts the movement rules need"""

    def piece_at(self, square: Square) -> Optional[Piece]: ...
    def is_empty(self, square: Square) -> bool: ...


Vector = tuple[int, int]

# letters used in move notation. NOTE: the knight uses N so it does not collide with the king
NOTATION_LETTERS: dict[PieceType, str] = {
    PieceType.KNIGHT: "N",
    PieceType.BISHOP: "B",
    PieceType.ROOK: "R",
    PieceType.QUEEN: "Q",
    PieceType.KING: "K",
}


@dataclass(frozen=True)
class Move:
    """A move as produced by the move generator: who moves where, and what (if anything) it takes."""

    from_square: Square
    to_square: Square
    piece: Piece
    captured: Optional[Piece] = None

    @classmethod
    def from_board(cls, from_square: Square, to_square: Square, board: Board) -> Self:
        """Snapshot the moving / captured pieces before the board gets updated."""
        moving_piece = board.piece_at(from_square)
        # for the type checker: only called for squares known to hold a piece
        assert moving_piece is not None
        return cls(from_square, to_square, moving_piece, board.piece_at(to_square))

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    def to_uci(self) -> str:
        """Universal Chess Interface: <from_square><to_square>, e.g. 'e2e4'"""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}"

    def to_notation(self) -> str:
        """
        Simplified algebraic notation
        ---

        * pawn push: the destination square, 'e4'
        * pawn capture: the file it came from + 'x' + destination, 'exd5'
        * other pieces: piece letter (+ 'x' when capturing) + destination, 'Nf3', 'Qxd5'

        NOTE: no disambiguation between identical pieces and no check / mate suffix.
        """
        destination = self.to_square.to_algebraic()
        takes = "x" if self.is_capture else ""
        if self.piece.type == PieceType.PAWN:
            return f"{self.from_square.file_name}{takes}{destination}" if takes else destination
        return f"{NOTATION_LETTERS[self.piece.type]}{takes}{destination}"


# --- HELPERS ---
def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def pawn_direction(color: Color) -> int:
    """White moves UP the board (towards row 0), black moves DOWN"""
    return -1 if color == Color.WHITE else 1


def pawn_starting_row(color: Color) -> int:
    return 6 if color == Color.WHITE else 1


def is_path_clear(from_square: Square, to_square: Square, board: Board) -> bool:
    """
    Walk from the square after `from_square` up to (but excluding) `to_square` in unit steps.
    Any occupied square in between blocks the path.

    NOTE: only meaningful for sliding pieces (rook, bishop, queen), i.e. when both squares share a line.
    """
    step: Vector = (
        _sign(to_square.row - from_square.row),
        _sign(to_square.col - from_square.col),
    )
    square = from_square.offset(*step)
    while square != to_square:
        # squares not sharing a line: the walk leaves the board without ever reaching to_square
        if not square.is_within_bounds() or not board.is_empty(square):
            return False
        square = square.offset(*step)
    return True


# --- MOVEMENT RULES ---
def is_pawn_move_legal(
    piece: Piece, from_square: Square, to_square: Square, board: Board
) -> bool:
    """
    A pawn:
    - moves by a single square forward, onto an empty square.
    - It can move by two in their first move (so when on their starting row), when both squares are empty
    - takes diagonally (one column, one row forward), only onto an opponent's piece

    NOTE: No en passant / promotion.
    """
    direction = pawn_direction(piece.color)
    d_row = to_square.row - from_square.row
    d_col = to_square.col - from_square.col
    target = board.piece_at(to_square)

    if d_col == 0:
        # pawns can never take forward
        if target is not None:
            return False
        if d_row == direction:
            return True
        if d_row == 2 * direction and from_square.row == pawn_starting_row(piece.color):
            return board.is_empty(from_square.offset(direction, 0))
        return False

    if abs(d_col) == 1 and d_row == direction:
        return piece.is_opponent_of(target)

    return False


def is_knight_move_legal(
    piece: Piece, from_square: Square, to_square: Square, board: Board
) -> bool:
    """Knights jump such that (|delta_row|, |delta_col|) is (2, 1) or (1, 2)"""
    jump = (abs(to_square.row - from_square.row), abs(to_square.col - from_square.col))
    return jump in {(2, 1), (1, 2)}


def is_king_move_legal(
    piece: Piece, from_square: Square, to_square: Square, board: Board
) -> bool:
    """The king can move by a single square at the time (no castling)."""
    d_row = abs(to_square.row - from_square.row)
    d_col = abs(to_square.col - from_square.col)
    return d_row <= 1 and d_col <= 1 and (d_row, d_col) != (0, 0)


def is_rook_move_legal(
    piece: Piece, from_square: Square, to_square: Square, board: Board
) -> bool:
    """Rooks move either horizontally or vertically"""
    same_row = to_square.row == from_square.row
    same_col = to_square.col == from_square.col
    if same_row == same_col:
        # either the null move or not on a straight line
        return False
    return is_path_clear(from_square, to_square, board)


def is_bishop_move_legal(
    piece: Piece, from_square: Square, to_square: Square, board: Board
) -> bool:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    d_row = abs(to_square.row - from_square.row)
    d_col = abs(to_square.col - from_square.col)
    if d_row != d_col or d_row == 0:
        return False
    return is_path_clear(from_square, to_square, board)


def is_queen_move_legal(
    piece: Piece, from_square: Square, to_square: Square, board: Board
) -> bool:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return is_rook_move_legal(piece, from_square, to_square, board) or is_bishop_move_legal(
        piece, from_square, to_square, board
    )


# -- STRATEGY PATTERN: MOVEMENT RULES ---
GeometryFn = Callable[[Piece, Square, Square, Board], bool]
MOVEMENT_RULES: dict[PieceType, GeometryFn] = {
    PieceType.PAWN: is_pawn_move_legal,
    PieceType.KNIGHT: is_knight_move_legal,
    PieceType.BISHOP: is_bishop_move_legal,
    PieceType.ROOK: is_rook_move_legal,
    PieceType.QUEEN: is_queen_move_legal,
    PieceType.KING: is_king_move_legal,
}


def is_geometry_legal(
    piece: Piece, from_square: Square, to_square: Square, board: Board
) -> bool:
    """Does the movement pattern of the piece allow going from one square to the other? (ignores checks)"""
    movement_rule = MOVEMENT_RULES[piece.type]
    return movement_rule(piece, from_square, to_square, board)
