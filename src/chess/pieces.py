"""Defines the types of chess pieces"""

from dataclasses import dataclass
from typing import Self

from src.core.shared_types import Color, PieceType

FEN_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}


PIECE_POINTS: dict[PieceType, int] = {
    PieceType.PAWN: 1,
    PieceType.KNIGHT: 3,
    PieceType.BISHOP: 3,
    PieceType.ROOK: 5,
    PieceType.QUEEN: 9,
    PieceType.KING: 0,
}

PIECE_SYMBOLS: dict[Color, dict[PieceType, str]] = {
    Color.WHITE: {
        PieceType.KING: "♔",
        PieceType.QUEEN: "♕",
        PieceType.ROOK: "♖",
        PieceType.BISHOP: "♗",
        PieceType.KNIGHT: "♘",
        PieceType.PAWN: "♙",
    },
    Color.BLACK: {
        PieceType.KING: "♚",
        PieceType.QUEEN: "♛",
        PieceType.ROOK: "♜",
        PieceType.BISHOP: "♝",
        PieceType.KNIGHT: "♞",
        PieceType.PAWN: "♟",
    },
}


@dataclass(frozen=True)
class Piece:
    """Immutable: moving / capturing replaces the Piece on a square, it never changes one."""

    type: PieceType
    color: Color

    @property
    def points(self) -> int:
        # NOTE: The King's worth is zero (kings are never captured, so it never counts)
        return PIECE_POINTS[self.type]

    @property
    def symbol(self) -> str:
        """Unicode chess glyph, e.g. for the move history"""
        return PIECE_SYMBOLS[self.color][self.type]

    @classmethod
    def from_fen(cls, character: str) -> Self:
        # lower case: Black pieces, upper case: White pieces
        color = Color.WHITE if character.isupper() else Color.BLACK
        piece_type = FEN_TO_PIECE[character.lower()]
        return cls(piece_type, color)

    def to_fen(self) -> str:
        return (
            PIECE_TO_FEN[self.type].upper()
            if self.color == Color.WHITE
            else PIECE_TO_FEN[self.type].lower()
        )

    def is_opponent_of(self, other: "Piece | None") -> bool:
        return other is not None and other.color != self.color
