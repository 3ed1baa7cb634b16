"""
The computer opponent.

Not a search: every candidate move is scored one ply deep with a quick heuristic and the best one is played.
"""

import random
from typing import Optional

from loguru import logger

from src.chess.board import Board
from src.chess.generator import legal_moves
from src.chess.moves import Move
from src.chess.pieces import Color, PieceType
from src.chess.square import Square
from src.core.config import EngineSettings, settings
from src.core.shared_types import Difficulty

CENTER_SQUARES: frozenset[Square] = frozenset(
    {Square(3, 3), Square(3, 4), Square(4, 3), Square(4, 4)}
)
CAPTURE_WEIGHT = 2
CENTER_BONUS = 0.5
DEVELOPMENT_BONUS = 0.3
KING_SAFETY_BONUS = 0.4
# random noise added to every score, only there to break ties
JITTER = 0.1


def heuristic_score(move: Move) -> float:
    """
    Deterministic part of the move score
    ---

    * material gain: 2x the points of the captured piece
    * center control: landing on one of the four center squares
    * development: leaving row 0 (the back rank the computer starts on)
    * king safety (crude): a king move onto row 0 outside the c-f files
    """
    score = 0.0
    if move.captured is not None:
        score += CAPTURE_WEIGHT * move.captured.points

    if move.to_square in CENTER_SQUARES:
        score += CENTER_BONUS

    if move.from_square.row == 0 and move.to_square.row > 0:
        score += DEVELOPMENT_BONUS

    if (
        move.piece.type == PieceType.KING
        and move.to_square.row == 0
        and (move.to_square.col < 2 or move.to_square.col > 5)
    ):
        score += KING_SAFETY_BONUS

    return score


def evaluate_move_quick(move: Move, rng: random.Random) -> float:
    """Heuristic score plus a little noise in [0, JITTER)"""
    return rng.random() * JITTER + heuristic_score(move)


def select_move(
    board: Board,
    color: Color,
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
    config: EngineSettings = settings,
) -> Optional[Move]:
    """
    Pick a move for the computer
    ----

    1. No legal moves? Return None (the caller must treat that as the end of the game)
    2. On easy, most of the time (easy_random_rate) just play any legal move
    3. Otherwise score the first `max_evaluated_moves` moves (in generator order) and play the best one.
       Ties go to the first one seen.
    """
    rng = rng or random.Random()
    moves = legal_moves(color, board)
    if not moves:
        logger.info(f"chess.opponent.select_move no_moves color={color}")
        return None

    if difficulty == Difficulty.EASY and rng.random() < config.easy_random_rate:
        move = rng.choice(moves)
        logger.debug(f"chess.opponent.select_move random move={move.to_uci()}")
        return move

    best_move: Optional[Move] = None
    best_score = float("-inf")
    for move in moves[: config.max_evaluated_moves]:
        score = evaluate_move_quick(move, rng)
        if score > best_score:
            best_score = score
            best_move = move

    logger.debug(
        f"chess.opponent.select_move difficulty={difficulty} evaluated={min(len(moves), config.max_evaluated_moves)} "
        f"move={best_move.to_uci() if best_move else None} score={best_score:.2f}"
    )
    return best_move or moves[0]
