"""Unit tests for /src/chess/opponent.py"""

import random
from unittest.mock import Mock, patch

import pytest

from src.chess.board import Board
from src.chess.fen import STARTING_PLACEMENT
from src.chess.generator import legal_moves
from src.chess.moves import Move
from src.chess.opponent import (
    JITTER,
    evaluate_move_quick,
    heuristic_score,
    select_move,
)
from src.chess.pieces import Color, Piece
from src.chess.square import Square
from src.core.config import EngineSettings
from src.core.shared_types import Difficulty

# black to move: dxc6 wins the queen, the king moves are worth (almost) nothing
QUEEN_HANGS = "4k3/3p4/2Q5/8/8/8/8/4K3"


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def fixed_rng(value: float) -> Mock:
    rng = Mock(spec=random.Random)
    rng.random.return_value = value
    rng.choice.side_effect = lambda moves: moves[-1]
    return rng


# --- SCORING ---
@pytest.mark.parametrize(
    "move, expected",
    [
        # quiet pawn push, not central
        (Move(sq("a7"), sq("a6"), Piece.from_fen("p")), 0.0),
        # central square
        (Move(sq("e7"), sq("e5"), Piece.from_fen("p")), 0.5),
        # leaving the back rank
        (Move(sq("b8"), sq("c6"), Piece.from_fen("n")), 0.3),
        # central + leaving the back rank
        (Move(sq("g8"), sq("e5"), Piece.from_fen("n")), 0.8),
        # king tucked away on the back rank
        (Move(sq("e8"), sq("g8"), Piece.from_fen("k")), 0.4),
        (Move(sq("e8"), sq("b8"), Piece.from_fen("k")), 0.4),
        # king on the back rank but in the middle
        (Move(sq("e8"), sq("d8"), Piece.from_fen("k")), 0.0),
        # capture: twice the material
        (Move(sq("d7"), sq("c6"), Piece.from_fen("p"), Piece.from_fen("Q")), 18.0),
        (Move(sq("c5"), sq("d4"), Piece.from_fen("p"), Piece.from_fen("N")), 6.5),
    ],
)
def test_heuristic_score(move: Move, expected: float) -> None:
    assert heuristic_score(move) == pytest.approx(expected)


def test_jitter_is_small() -> None:
    rng = random.Random(7)
    move = Move(sq("e7"), sq("e5"), Piece.from_fen("p"))
    for _ in range(100):
        score = evaluate_move_quick(move, rng)
        assert 0.5 <= score < 0.5 + JITTER


# --- SELECTION ---
@pytest.mark.parametrize("difficulty", [Difficulty.MEDIUM, Difficulty.HARD])
@pytest.mark.parametrize("seed", range(5))
def test_takes_the_hanging_queen(difficulty: Difficulty, seed: int) -> None:
    board = Board.from_fen(QUEEN_HANGS)
    move = select_move(board, Color.BLACK, difficulty, random.Random(seed))
    assert move is not None
    assert move.to_uci() == "d7c6"


@pytest.mark.parametrize(
    "placement",
    [
        STARTING_PLACEMENT,
        QUEEN_HANGS,
        # the knight can take a pawn
        "4k3/8/8/8/3n4/8/4P3/4K3",
    ],
)
@pytest.mark.parametrize("seed", range(10))
def test_picks_a_best_scoring_move(placement: str, seed: int) -> None:
    """The noise only ever decides between moves of equal score"""
    board = Board.from_fen(placement)
    evaluated = legal_moves(Color.BLACK, board)[:15]
    move = select_move(board, Color.BLACK, Difficulty.HARD, random.Random(seed))
    assert move in evaluated
    best = max(heuristic_score(candidate) for candidate in evaluated)
    assert heuristic_score(move) >= best


def test_ties_go_to_the_first_move() -> None:
    """Without noise, d7d5 is the first of the two central pawn pushes among the first 15 black moves"""
    move = select_move(Board.starting_position(), Color.BLACK, Difficulty.HARD, fixed_rng(0.0))
    assert move is not None
    assert move.to_uci() == "d7d5"


def test_only_the_first_moves_are_evaluated() -> None:
    board = Board.starting_position()
    with patch("src.chess.opponent.evaluate_move_quick", return_value=0.0) as mock_evaluate:
        move = select_move(board, Color.BLACK, Difficulty.MEDIUM, random.Random(1))
    assert mock_evaluate.call_count == 15
    # all scores equal: the first generated move
    assert move == legal_moves(Color.BLACK, board)[0]


def test_evaluation_window_is_configurable() -> None:
    config = EngineSettings(max_evaluated_moves=3)
    with patch("src.chess.opponent.evaluate_move_quick", return_value=0.0) as mock_evaluate:
        select_move(Board.starting_position(), Color.BLACK, Difficulty.HARD, random.Random(1), config)
    assert mock_evaluate.call_count == 3


def test_easy_plays_random_moves_most_of_the_time() -> None:
    board = Board.from_fen(QUEEN_HANGS)
    rng = fixed_rng(0.1)
    move = select_move(board, Color.BLACK, Difficulty.EASY, rng)
    # the whole list is up for grabs, not just the evaluated ones
    rng.choice.assert_called_once()
    assert rng.choice.call_args.args[0] == legal_moves(Color.BLACK, board)
    assert move == legal_moves(Color.BLACK, board)[-1]


def test_easy_falls_back_to_the_heuristic() -> None:
    board = Board.from_fen(QUEEN_HANGS)
    rng = fixed_rng(0.9)
    move = select_move(board, Color.BLACK, Difficulty.EASY, rng)
    rng.choice.assert_not_called()
    assert move is not None
    assert move.to_uci() == "d7c6"


def test_random_rate_is_configurable() -> None:
    board = Board.from_fen(QUEEN_HANGS)
    rng = fixed_rng(0.1)
    select_move(board, Color.BLACK, Difficulty.EASY, rng, EngineSettings(easy_random_rate=0.0))
    rng.choice.assert_not_called()


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_no_moves_returns_none(difficulty: Difficulty) -> None:
    board = Board.from_fen("k7/8/1QK5/8/8/8/8/8")
    assert select_move(board, Color.BLACK, difficulty, random.Random(0)) is None


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_selected_move_is_legal(difficulty: Difficulty) -> None:
    board = Board.from_fen("r3k2r/pppq1ppp/2npbn2/4p3/2B1P3/2NP1N2/PPP2PPP/R1BQ1RK1")
    for seed in range(5):
        move = select_move(board, Color.BLACK, difficulty, random.Random(seed))
        assert move in legal_moves(Color.BLACK, board)
