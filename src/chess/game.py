"""
The Game class is the entrypoint into the domain layer for the service layer.
It owns the board and whose turn it is, applies moves, and detects the end of the game (checkmate / stalemate).
"""

from dataclasses import dataclass, field
from typing import Optional, Self

from loguru import logger

from src.chess.attacks import is_in_check
from src.chess.board import Board
from src.chess.fen import has_one_king_per_color, is_valid_square_name
from src.chess.generator import is_valid_move, legal_destinations, legal_moves
from src.chess.moves import Move
from src.chess.pieces import Color
from src.chess.square import Square
from src.core.exceptions import GameStateError, InvalidPlacementError
from src.core.models import GameModel
from src.core.shared_types import Difficulty, Status


@dataclass(frozen=True)
class Terminal:
    """How the game ended. Only a checkmate has a winner."""

    kind: Status
    winner: Optional[Color] = None


@dataclass(frozen=True)
class MoveRecord:
    """Entry in the move history. Display only: no rule depends on it."""

    move: Move
    notation: str
    move_number: int
    player: Color


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    current_player: Color
    history: list[MoveRecord] = field(default_factory=list)
    terminal: Optional[Terminal] = None

    @classmethod
    def new_game(cls) -> Self:
        """Standard starting position, white to move."""
        return cls(board=Board.starting_position(), current_player=Color.WHITE)

    @classmethod
    def from_position(cls, board: Board, to_move: Color) -> Self:
        """Start from an arbitrary position. The position may already be over (e.g. a mate puzzle after the fact)."""
        if not has_one_king_per_color(board.to_fen()):
            raise InvalidPlacementError(
                f"A game needs exactly one king per color: {board.to_fen()!r}"
            )
        game = cls(board=board, current_player=to_move)
        game._update_game_status()
        return game

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """
        Define how to construct a Game from the information the Service layer actually has
        ---

        The recorded moves are replayed from the starting position. The stored board / turn / status
        must agree with the outcome of that replay, otherwise the record is corrupt.
        """
        if model.status not in {status.value for status in Status}:
            raise GameStateError(
                f"Invalid status code: {model.status!r}. \nPick one from {','.join(status.value for status in Status)}"
            )

        game = cls.new_game()
        for uci in model.moves_uci:
            if not (len(uci) == 4 and is_valid_square_name(uci[:2]) and is_valid_square_name(uci[2:])):
                raise GameStateError(f"Cannot interpret stored move {uci!r} as UCI.")
            from_square = Square.from_algebraic(uci[:2])
            to_square = Square.from_algebraic(uci[2:4])
            if game.apply_move(from_square, to_square) is None:
                raise GameStateError(f"Stored move {uci!r} is not legal in the replayed game.")

        if game.board.to_fen() != model.board:
            raise GameStateError(
                f"Stored board {model.board!r} does not match the replayed moves ({game.board.to_fen()!r})."
            )
        if game.current_player != model.current_player or game.status != model.status:
            raise GameStateError(
                f"Stored turn/status ({model.current_player}, {model.status}) does not match the replayed moves."
            )
        return game

    def to_model(self, difficulty: Difficulty) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            board=self.board.to_fen(),
            current_player=self.current_player.value,
            difficulty=difficulty.value,
            moves_uci=[record.move.to_uci() for record in self.history],
            notations=[record.notation for record in self.history],
            status=self.status.value,
            winner=self.winner.value if self.winner else None,
        )

    # --- QUERIES ---
    @property
    def status(self) -> Status:
        return self.terminal.kind if self.terminal else Status.IN_PROGRESS

    @property
    def is_game_over(self) -> bool:
        return self.terminal is not None

    @property
    def winner(self) -> Optional[Color]:
        """Only a checkmate has a winner: the player who delivered it."""
        return self.terminal.winner if self.terminal else None

    @property
    def last_move(self) -> Optional[MoveRecord]:
        return self.history[-1] if self.history else None

    def legal_moves(self) -> list[Move]:
        """Legal moves of the player to move (empty once the game is over)"""
        if self.is_game_over:
            return []
        return legal_moves(self.current_player, self.board)

    def legal_destinations(self, square: Square) -> list[Square]:
        if self.is_game_over:
            return []
        return legal_destinations(square, self.current_player, self.board)

    def is_valid_move(self, from_square: Square, to_square: Square) -> bool:
        if self.is_game_over:
            return False
        return is_valid_move(from_square, to_square, self.current_player, self.board)

    def is_check(self) -> bool:
        """Is the player to move in check?"""
        return is_in_check(self.current_player, self.board)

    # --- STATE TRANSITION ---
    def apply_move(self, from_square: Square, to_square: Square) -> Optional[MoveRecord]:
        """
        Attempt to make a move for the player to move
        -----

        1. re-validate the move (a rejected move returns None and changes nothing)
        2. update the board (the king cache follows if the king moved)
        3. update the history of moves
        4. hand the turn to the opponent
        5. update game status (checkmate / stalemate when the opponent has no legal move)
        """
        if not self.is_valid_move(from_square, to_square):
            logger.debug(
                f"chess.game.apply_move rejected from={from_square} to={to_square} player={self.current_player}"
            )
            return None

        # Store move info before update
        move = Move.from_board(from_square, to_square, self.board)
        record = MoveRecord(
            move=move,
            notation=move.to_notation(),
            move_number=len(self.history) // 2 + 1,
            player=self.current_player,
        )

        self.board.move_piece(from_square, to_square)
        self.history.append(record)
        self.current_player = self.current_player.opponent
        self._update_game_status()

        logger.info(
            f"chess.game.move_applied player={record.player} move={move.to_uci()} notation={record.notation} status={self.status}"
        )
        return record

    # -- PRIVATE HELPERS ---
    def _update_game_status(self) -> None:
        """
        Performs checks to see if game has ended.

        NOTE the turn has already been handed over. The player to move is the opponent of the player that just moved.
        """
        if legal_moves(self.current_player, self.board):
            return

        if self.is_check():
            self.terminal = Terminal(Status.CHECKMATE, winner=self.current_player.opponent)
        else:
            self.terminal = Terminal(Status.STALEMATE)
        logger.info(f"chess.game.terminal kind={self.terminal.kind} winner={self.terminal.winner}")
