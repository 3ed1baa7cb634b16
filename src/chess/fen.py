"""
Encoding of the piece placement on the board.

Only the first field of a FEN string is used: the game always starts from the standard position,
and there is no castling / en passant / move clock to encode.

ex) The standard starting position has the placement
rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
* black pieces are on the 8th rank (row 0 of the board), read from the a-file to the h-file
* a number denotes that many consecutive empty squares
* capital letters are white pieces
"""

from src.chess.pieces import FEN_TO_PIECE
from src.chess.square import BOARD_DIMENSIONS

STARTING_PLACEMENT = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
EMPTY_PLACEMENT = "/".join(["8"] * BOARD_DIMENSIONS[0])


def is_valid_placement(placement: str) -> bool:
    """Check the rows have the correct length and only contain known characters."""
    num_rows, num_cols = BOARD_DIMENSIONS
    row_fens = placement.split("/")
    if len(row_fens) != num_rows:
        return False

    for row_fen in row_fens:
        col_count = 0
        for character in row_fen:
            # make sure every character is valid
            if character.isdigit():
                col_count += int(character)
            elif character.lower() in FEN_TO_PIECE:
                col_count += 1
            else:
                # immediately invalidate if the character is anything else
                return False

        # make sure you are creating a correctly sized board
        if col_count != num_cols:
            return False
    return True


def has_one_king_per_color(placement: str) -> bool:
    """A placement that can be played from must have exactly one king of each color."""
    return placement.count("K") == 1 and placement.count("k") == 1


def is_valid_square_name(square: str) -> bool:
    """Valid square should be a letter for the file + a number for the rank"""
    num_rows, num_cols = BOARD_DIMENSIONS
    if len(square) != 2:
        return False

    file_char, rank_char = square[0], square[1]
    if file_char not in "abcdefgh"[:num_cols]:
        return False

    if not rank_char.isdigit():
        return False

    return 1 <= int(rank_char) <= num_rows
