"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import random
from typing import Optional
from uuid import UUID

from loguru import logger

from src.api.models import (
    GameIdRequest,
    GameResponse,
    LegalMovesResponse,
    MoveRecordResponse,
    MoveRequest,
    MoveResponse,
    SelectSquareRequest,
    StartGameRequest,
)
from src.chess.game import Game, MoveRecord
from src.chess.square import Square
from src.core.config import EngineSettings, settings
from src.core.exceptions import GameStateError, RepositoryError
from src.core.shared_types import Difficulty
from src.db.repository import GameRepository
from src.services.session import GameSession, NullObserver, Scheduler


class GameRecorder(NullObserver):
    """Persist a snapshot of the game whenever it changes (including the computer's deferred moves)."""

    def __init__(self, repository: GameRepository, game_id: UUID, session: GameSession) -> None:
        self.repo = repository
        self.game_id = game_id
        self.session = session

    def on_state_changed(self, game: Game) -> None:
        self.repo.update_game(self.game_id, game.to_model(self.session.difficulty))


class ChessService:
    """Orchestration of layers for chess games against the computer. One GameSession per game id."""

    def __init__(
        self,
        repository: GameRepository,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        config: EngineSettings = settings,
    ) -> None:
        self.repo = repository
        self.scheduler = scheduler
        self.rng = rng
        self.config = config
        self._sessions: dict[UUID, GameSession] = {}

    # -- API routes logic ---
    def create_game(self, request: StartGameRequest) -> GameResponse:
        """Human picked a difficulty: start a new game."""

        # start the game and store its first snapshot
        session = self._new_session()
        session.start_game(request.difficulty)
        _, game_id = self.repo.create_game(session.snapshot())

        # from now on every change gets persisted
        self._register(game_id, session)
        logger.info(f"chess.service.create_game game_id={game_id} difficulty={request.difficulty}")
        return self._create_game_response(game_id, session)

    def get_game_state(self, request: GameIdRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check when the computer has moved for instance.
        """
        session = self._fetch_session(request.game_id)
        return self._create_game_response(request.game_id, session)

    def legal_moves(self, request: GameIdRequest) -> LegalMovesResponse:
        """retrieve set of legal moves of the player to move."""
        session = self._fetch_session(request.game_id)
        with session.lock:
            game = self._active_game(request.game_id, session)
            return LegalMovesResponse(
                game_id=request.game_id,
                color=game.current_player,
                legal_moves=[move.to_uci() for move in game.legal_moves()],
            )

    def select_square(self, request: SelectSquareRequest) -> GameResponse:
        """Click on a square (selects / deselects a piece, or moves the selected piece there)."""
        session = self._fetch_session(request.game_id)
        session.select_square(Square.from_algebraic(request.square))
        return self._create_game_response(request.game_id, session)

    def make_move(self, request: MoveRequest) -> MoveResponse:
        """Make a move attempt. An illegal move is not an error, it simply is not accepted."""
        session = self._fetch_session(request.game_id)
        with session.lock:
            record = session.attempt_move(
                Square.from_algebraic(request.from_square),
                Square.from_algebraic(request.to_square),
            )
            game = self._active_game(request.game_id, session)
            return MoveResponse(
                accepted=record is not None,
                move=(
                    self._create_move_response(record, is_recent=record is game.last_move) if record else None
                ),
                game=self._create_game_response(request.game_id, session),
            )

    def restart_game(self, request: GameIdRequest) -> GameResponse:
        """Start over (same id, same difficulty). A pending computer move is discarded."""
        session = self._fetch_session(request.game_id)
        session.start_game(session.difficulty)
        return self._create_game_response(request.game_id, session)

    def delete_game(self, request: GameIdRequest) -> None:
        """Handle a request to delete a Game record."""
        session = self._sessions.pop(request.game_id, None)
        if session is not None:
            session.reset_game()
        self.repo.delete_game(request.game_id)

    # -- Internal helpers --
    def _new_session(self) -> GameSession:
        return GameSession(scheduler=self.scheduler, rng=self.rng, config=self.config)

    def _register(self, game_id: UUID, session: GameSession) -> None:
        session.subscribe(GameRecorder(self.repo, game_id, session))
        self._sessions[game_id] = session

    def _fetch_session(self, game_id: UUID) -> GameSession:
        """Live session if there is one. Otherwise rebuild it from the repository (and raise error if that fails)."""
        if game_id in self._sessions:
            return self._sessions[game_id]

        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        if game_model.difficulty not in {difficulty.value for difficulty in Difficulty}:
            raise GameStateError(f"Stored game {game_id} has an unknown difficulty: {game_model.difficulty!r}")

        session = self._new_session()
        session.resume(Game.from_model(game_model), Difficulty(game_model.difficulty))
        self._register(game_id, session)
        logger.info(f"chess.service.restored game_id={game_id} moves={len(game_model.moves_uci)}")
        return session

    def _active_game(self, game_id: UUID, session: GameSession) -> Game:
        if session.game is None:
            raise GameStateError(f"Game with {game_id=} has no game in progress.")
        return session.game

    def _create_move_response(self, record: MoveRecord, is_recent: bool = False) -> MoveRecordResponse:
        return MoveRecordResponse(
            move_number=record.move_number,
            player=record.player,
            notation=record.notation,
            uci=record.move.to_uci(),
            piece_symbol=record.move.piece.symbol,
            is_recent=is_recent,
        )

    def _create_game_response(self, game_id: UUID, session: GameSession) -> GameResponse:
        """Convert the session's state to a GameResponse (for game with given ID.)"""
        with session.lock:
            game = self._active_game(game_id, session)
            selected = session.selected_square
            return GameResponse(
                game_id=game_id,
                difficulty=session.difficulty,
                board=game.board.to_fen(),
                current_player=game.current_player,
                status=game.status,
                winner=game.winner,
                in_check=game.is_check(),
                opponent_thinking=session.opponent_thinking,
                selected_square=selected.to_algebraic() if selected else None,
                highlighted_squares=(
                    [square.to_algebraic() for square in session.valid_destinations(selected)]
                    if selected
                    else []
                ),
                move_history=[
                    # only the game's latest move is flagged as recent
                    self._create_move_response(record, is_recent=record is game.last_move)
                    for record in session.recent_history()
                ],
                material=game.board.count_material(),
            )
