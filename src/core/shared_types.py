"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    IN_PROGRESS = "in progress"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


# --- Color and PieceType are closed: an empty square is simply `None` on the board (see src/chess/board.py)


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class Difficulty(StrEnum):
    """How hard the computer opponent tries. Only `easy` plays random moves some of the time."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
