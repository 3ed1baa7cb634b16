"""
The Game board: which piece stands where, plus a cache of where the kings are.

The board has no knowledge of chess rules. Legality lives in moves.py / attacks.py / generator.py.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.fen import EMPTY_PLACEMENT, STARTING_PLACEMENT, is_valid_placement
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square, all_squares
from src.core.exceptions import InvalidPlacementError

Grid = list[list[Optional[Piece]]]


def _empty_grid() -> Grid:
    return [[None] * BOARD_DIMENSIONS[1] for _ in range(BOARD_DIMENSIONS[0])]


@dataclass
class Board:
    grid: Grid = field(default_factory=_empty_grid)
    # derived from the grid, never passed in
    king_positions: dict[Color, Square] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        for square in all_squares():
            piece = self.grid[square.row][square.col]
            if piece is not None and piece.type == PieceType.KING:
                self.king_positions[piece.color] = square

    @classmethod
    def from_fen(cls, placement: str) -> Self:
        """Construct a board using the piece placement part of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on row 0 (the 8th rank), starting with the rook on a8, knight on b8, etc.
        * black pawns cover row 1 entirely
        * rows 2 through 5 have 8 consecutive empty squares
        * row 6 are the white pawns (capital letters)
        * row 7 are the white pieces.
        """
        if not is_valid_placement(placement):
            raise InvalidPlacementError(
                f"Cannot interpret supplied string as a board placement: {placement!r}"
            )

        board = cls()
        for row, fen_one_row in enumerate(placement.split("/")):
            col = 0
            for character in fen_one_row:
                if character.isalpha():
                    # a letter directly denotes the piece that should be created
                    board.place(Square(row, col), Piece.from_fen(character))
                    col += 1
                else:
                    # a number denotes the amount of empty squares after each other
                    col += int(character)
        return board

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_PLACEMENT)

    @classmethod
    def empty(cls) -> Self:
        return cls.from_fen(EMPTY_PLACEMENT)

    def to_fen(self) -> str:
        """Rows are separated by slashes, top row (black's back rank) first."""
        return "/".join(self._row_to_fen(row) for row in range(BOARD_DIMENSIONS[0]))

    def _row_to_fen(self, row: int) -> str:
        """FEN string of a single row"""
        fen_characters: list[str] = []
        empty_count = 0
        for piece in self.grid[row]:
            if piece is not None:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire row is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    # --- QUERIES ---
    def piece_at(self, square: Square) -> Optional[Piece]:
        """Out of bounds squares are simply empty."""
        if not square.is_within_bounds():
            return None
        return self.grid[square.row][square.col]

    def is_empty(self, square: Square) -> bool:
        return self.piece_at(square) is None

    def king_square(self, color: Color) -> Optional[Square]:
        return self.king_positions.get(color)

    def squares(self) -> list[Square]:
        """All squares, row-major"""
        return all_squares()

    def locate_color(self, color: Color) -> list[Square]:
        """Squares holding a piece of the given color, row-major"""
        return [
            square
            for square in all_squares()
            if (piece := self.piece_at(square)) is not None and piece.color == color
        ]

    def count_material(self) -> dict[Color, int]:
        """Tally the points of material each player has on the board"""
        return {color: self._count_material_player(color) for color in Color}

    def _count_material_player(self, color: Color) -> int:
        return sum(
            piece.points for row in self.grid for piece in row if piece and piece.color == color
        )

    # --- MUTATIONS ---
    def place(self, square: Square, piece: Optional[Piece]) -> None:
        """
        Write a single square. The only way the grid gets changed.
        ---

        Keeps the king cache in sync:
        * placing a king records its square
        * overwriting / clearing the square the cache points at drops that entry
        """
        if not square.is_within_bounds():
            raise InvalidPlacementError(f"Cannot place a piece outside the board: {square}")

        previous = self.grid[square.row][square.col]
        if (
            previous is not None
            and previous.type == PieceType.KING
            and self.king_positions.get(previous.color) == square
        ):
            del self.king_positions[previous.color]

        self.grid[square.row][square.col] = piece
        if piece is not None and piece.type == PieceType.KING:
            self.king_positions[piece.color] = square

    def remove_piece(self, square: Square) -> Optional[Piece]:
        piece = self.piece_at(square)
        self.place(square, None)
        return piece

    def move_piece(self, from_square: Square, to_square: Square) -> Optional[Piece]:
        """Move whatever stands on from_square. Returns the piece that stood on to_square (if any)"""
        moving_piece = self.piece_at(from_square)
        captured = self.piece_at(to_square)
        # clear the origin first, so the king cache ends up pointing at the destination
        self.place(from_square, None)
        self.place(to_square, moving_piece)
        return captured

    @contextmanager
    def trial_move(self, from_square: Square, to_square: Square) -> Iterator[Self]:
        """
        Temporarily make a move (e.g. to see if it would leave a king in check).
        The board is restored on exit, also if the body raises.
        """
        moving_piece = self.piece_at(from_square)
        captured = self.move_piece(from_square, to_square)
        try:
            yield self
        finally:
            self.place(to_square, captured)
            self.place(from_square, moving_piece)

    def copy(self) -> Self:
        """Independent snapshot (Pieces are immutable, so only the containers need copying)"""
        return type(self)(grid=[list(row) for row in self.grid])
