"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.chess.fen import is_valid_square_name
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, Difficulty, Status


def _validate_square_name(value: str) -> str:
    if not is_valid_square_name(value):
        raise InvalidRequestError(f"Cannot interpret {value!r} as a valid square name.")
    return value


# --- REQUEST MODELS ---
class StartGameRequest(BaseModel):
    difficulty: Difficulty = Difficulty.MEDIUM


class GameIdRequest(BaseModel):
    game_id: UUID


class SelectSquareRequest(BaseModel):
    game_id: UUID
    square: str

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_square_name(value)


class MoveRequest(BaseModel):
    game_id: UUID
    from_square: str
    to_square: str

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_square_name(value)


# --- RESPONSE MODELS ---
class MoveRecordResponse(BaseModel):
    move_number: int
    player: Color
    notation: str
    uci: str
    piece_symbol: str
    # the most recent move of the game (highlighted in the history view)
    is_recent: bool = False


class GameResponse(BaseModel):
    game_id: UUID
    difficulty: Difficulty
    board: str
    current_player: Color
    status: Status
    winner: Optional[Color] = None
    in_check: bool = False
    opponent_thinking: bool = False
    selected_square: Optional[str] = None
    highlighted_squares: list[str] = []
    move_history: list[MoveRecordResponse] = []
    material: dict[Color, int] = {}


class MoveResponse(BaseModel):
    """A rejected move is not an error: `accepted` is False and the game is unchanged."""

    accepted: bool
    move: Optional[MoveRecordResponse] = None
    game: GameResponse


class LegalMovesResponse(BaseModel):
    game_id: UUID
    color: Color
    legal_moves: list[str]
