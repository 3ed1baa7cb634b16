from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from src.api.models import (
    GameResponse,
    MoveRequest,
    MoveResponse,
    SelectSquareRequest,
    StartGameRequest,
)
from src.chess.fen import STARTING_PLACEMENT
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, Difficulty, Status


@pytest.fixture
def mock_id() -> UUID:
    return uuid4()


# -- Validation - StartGameRequest --
def test_default_difficulty() -> None:
    assert StartGameRequest().difficulty == Difficulty.MEDIUM


@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
def test_difficulty_from_string(difficulty: str) -> None:
    assert StartGameRequest(difficulty=difficulty).difficulty == Difficulty(difficulty)  # type: ignore[arg-type]


def test_unknown_difficulty() -> None:
    with pytest.raises(ValidationError):
        StartGameRequest(difficulty="grandmaster")  # type: ignore[arg-type]


# -- Validation - square names --
def test_valid_move_request(mock_id: UUID) -> None:
    request = MoveRequest(game_id=mock_id, from_square="e2", to_square="e4")
    assert request.from_square == "e2"
    assert request.to_square == "e4"


@pytest.mark.parametrize("square", ["e9", "i1", "e", "e22", "", "22"])
def test_invalid_move_squares(mock_id: UUID, square: str) -> None:
    with pytest.raises(InvalidRequestError):
        MoveRequest(game_id=mock_id, from_square=square, to_square="e4")
    with pytest.raises(InvalidRequestError):
        MoveRequest(game_id=mock_id, from_square="e2", to_square=square)


def test_select_square_request(mock_id: UUID) -> None:
    assert SelectSquareRequest(game_id=mock_id, square="h8").square == "h8"
    with pytest.raises(InvalidRequestError):
        SelectSquareRequest(game_id=mock_id, square="h0")


def test_invalid_game_id() -> None:
    with pytest.raises(ValidationError):
        MoveRequest(game_id="not-a-uuid", from_square="e2", to_square="e4")  # type: ignore[arg-type]


# -- Responses --
def test_rejected_move_response(mock_id: UUID) -> None:
    game = GameResponse(
        game_id=mock_id,
        difficulty=Difficulty.EASY,
        board=STARTING_PLACEMENT,
        current_player=Color.WHITE,
        status=Status.IN_PROGRESS,
    )
    response = MoveResponse(accepted=False, game=game)
    assert response.move is None
    assert response.game.highlighted_squares == []
    assert response.model_dump()["game"]["status"] == "in progress"
