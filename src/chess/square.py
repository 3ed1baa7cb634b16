"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

# Chess board is always 8x8. (rows, columns)
BOARD_DIMENSIONS = (8, 8)
FILE_NAMES = "abcdefgh"


@dataclass(frozen=True)
class Square:
    """
    Row 0 is black's back rank (the 8th rank), row 7 is white's back rank (the 1st rank).
    Column 0 is the a-file.
    """

    row: int
    col: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a8' - 'h1' get converted to (0,0) - (7,7)"""
        col = FILE_NAMES.index(sq[0])
        row = BOARD_DIMENSIONS[0] - int(sq[1])
        return cls(row, col)

    def to_algebraic(self) -> str:
        return f"{FILE_NAMES[self.col]}{BOARD_DIMENSIONS[0] - self.row}"

    @property
    def file_name(self) -> str:
        return FILE_NAMES[self.col]

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )

    def offset(self, d_row: int, d_col: int) -> Square:
        """Square shifted by the given vector. NOTE: may lie outside the board"""
        return Square(self.row + d_row, self.col + d_col)


def all_squares() -> list[Square]:
    """Every square of the board in row-major order (a8, b8, ..., h8, a7, ..., h1)"""
    return [
        Square(row, col)
        for row in range(BOARD_DIMENSIONS[0])
        for col in range(BOARD_DIMENSIONS[1])
    ]
