"""
A single game between the human (white) and the computer (black), as seen by whatever renders it.

The view calls in: start_game / select_square / attempt_move / reset_game.
The session calls out: GameObserver notifications, synchronously after every change.

The computer's reply is deferred ("thinking time"). Every deferred callback remembers the generation of the game
it was scheduled for. Starting / resetting a game bumps the generation and cancels whatever is pending,
so a late callback can never land a move on a newer game.

Without a running event loop the deferred callbacks run on timer threads; `lock` serializes them with the view's calls.
"""

import asyncio
import random
import threading
from typing import Callable, Optional, Protocol

from loguru import logger

from src.chess.game import Game, MoveRecord
from src.chess.opponent import select_move
from src.chess.pieces import Color
from src.chess.square import Square
from src.core.config import EngineSettings, settings
from src.core.exceptions import GameStateError
from src.core.models import GameModel
from src.core.shared_types import Difficulty, Status

RECENT_HISTORY_LENGTH = 10


class GameObserver(Protocol):
    """Notifications for the presentation layer. Implement the ones you need (see NullObserver)."""

    def on_state_changed(self, game: Game) -> None: ...
    def on_move_applied(self, record: MoveRecord) -> None: ...
    def on_terminal(self, kind: Status, winner: Optional[Color]) -> None: ...
    def on_opponent_thinking_changed(self, thinking: bool) -> None: ...


class NullObserver:
    """Convenience base class: ignores every notification."""

    def on_state_changed(self, game: Game) -> None:
        pass

    def on_move_applied(self, record: MoveRecord) -> None:
        pass

    def on_terminal(self, kind: Status, winner: Optional[Color]) -> None:
        pass

    def on_opponent_thinking_changed(self, thinking: bool) -> None:
        pass


class ScheduledCall(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Something that can run a callback later (and cancel it before it runs)."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall: ...


class AsyncioScheduler:
    """
    Default scheduler: runs deferred callbacks on the asyncio event loop.

    Outside a running loop (plain synchronous callers) the callback runs on a daemon timer thread instead.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return self._call_later_on_thread(delay, callback)
        return loop.call_later(delay, callback)

    @staticmethod
    def _call_later_on_thread(delay: float, callback: Callable[[], None]) -> threading.Timer:
        logger.debug(f"chess.scheduler.thread_fallback delay={delay}")
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class GameSession:
    """Owns one Game at a time, plus everything around it that is not chess: selection, thinking time, notifications."""

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        observers: Optional[list[GameObserver]] = None,
        rng: Optional[random.Random] = None,
        config: EngineSettings = settings,
    ) -> None:
        self.scheduler: Scheduler = scheduler or AsyncioScheduler()
        self.observers: list[GameObserver] = list(observers or [])
        self.rng = rng or random.Random()
        self.config = config

        self.human_color = Color.WHITE
        self.computer_color = Color.BLACK

        self.game: Optional[Game] = None
        self.difficulty = Difficulty.MEDIUM
        self.generation = 0
        self.opponent_thinking = False
        self.selected_square: Optional[Square] = None
        self._history_cleared_at = 0
        self._pending: list[ScheduledCall] = []
        # deferred callbacks may arrive on a timer thread; hold it while reading the game from another thread
        self.lock = threading.RLock()

    def subscribe(self, observer: GameObserver) -> None:
        self.observers.append(observer)

    # -- CALLED BY THE VIEW ---
    def start_game(self, difficulty: Difficulty) -> Game:
        """Throw away whatever was going on and start from the standard position."""
        with self.lock:
            self._discard_pending()
            self.difficulty = difficulty
            self.game = Game.new_game()
            logger.info(f"chess.session.start generation={self.generation} difficulty={difficulty}")
            self._notify_state_changed()
            return self.game

    def resume(self, game: Game, difficulty: Difficulty) -> None:
        """Continue an existing game (e.g. restored from the repository)."""
        with self.lock:
            self._discard_pending()
            self.difficulty = difficulty
            self.game = game
            logger.info(
                f"chess.session.resume generation={self.generation} difficulty={difficulty} moves={len(game.history)}"
            )
            self._notify_state_changed()
            self._continue_after_move()

    def reset_game(self) -> None:
        """Back to the 'pick a difficulty' screen. A pending computer move is discarded."""
        with self.lock:
            self._discard_pending()
            self.game = None
            logger.info(f"chess.session.reset generation={self.generation}")

    def is_humans_turn(self) -> bool:
        return (
            self.game is not None
            and not self.game.is_game_over
            and not self.opponent_thinking
            and self.game.current_player == self.human_color
        )

    def valid_destinations(self, square: Square) -> list[Square]:
        """Squares to highlight when the human picks up the piece on the given square"""
        if not self.is_humans_turn():
            return []
        # for the type checker: is_humans_turn checked there is a game
        assert self.game is not None
        return self.game.legal_destinations(square)

    def select_square(self, square: Square) -> Optional[MoveRecord]:
        """
        Click on a square
        ----

        * nothing selected + own piece: select it
        * click the selected square again: deselect
        * selected piece + valid destination: make the move (returns the record)
        * selected piece + another own piece: select that one instead
        * anything else: ignored
        """
        with self.lock:
            if not self.is_humans_turn():
                return None
            # for the type checker: is_humans_turn checked there is a game
            assert self.game is not None

            if self.selected_square is None:
                if self._holds_own_piece(square):
                    self.selected_square = square
                return None

            if square == self.selected_square:
                self.selected_square = None
                return None

            if self.game.is_valid_move(self.selected_square, square):
                from_square, self.selected_square = self.selected_square, None
                return self.attempt_move(from_square, square)

            if self._holds_own_piece(square):
                self.selected_square = square
            return None

    def attempt_move(self, from_square: Square, to_square: Square) -> Optional[MoveRecord]:
        """The human tries a move (e.g. drag-and-drop). An illegal move is ignored and returns None."""
        with self.lock:
            if not self.is_humans_turn():
                return None
            # for the type checker: is_humans_turn checked there is a game
            assert self.game is not None

            record = self.game.apply_move(from_square, to_square)
            if record is None:
                return None

            self.selected_square = None
            self._after_move(record)
            return record

    def recent_history(self, limit: int = RECENT_HISTORY_LENGTH) -> list[MoveRecord]:
        """The last few moves since the history display was last cleared"""
        if self.game is None:
            return []
        return self.game.history[self._history_cleared_at :][-limit:]

    def clear_history_view(self) -> None:
        """Only clears what gets displayed. The game's own history is append-only."""
        self._history_cleared_at = len(self.game.history) if self.game else 0

    def snapshot(self) -> GameModel:
        """Current game in transport format"""
        with self.lock:
            if self.game is None:
                raise GameStateError("No game in progress: start a game first.")
            return self.game.to_model(self.difficulty)

    # -- COMPUTER OPPONENT ---
    def _after_move(self, record: MoveRecord) -> None:
        for observer in self.observers:
            observer.on_move_applied(record)
        self._notify_state_changed()
        self._continue_after_move()

    def _continue_after_move(self) -> None:
        """Either announce the end of the game, or let the computer reply."""
        # for the type checker: only called while a game is being played
        assert self.game is not None
        if self.game.is_game_over:
            self._set_thinking(False)
            self._schedule(self.config.terminal_notice_delay, self._announce_terminal)
        elif self.game.current_player == self.computer_color:
            self._schedule(self.config.opponent_move_delay, self._begin_opponent_turn)

    def _begin_opponent_turn(self, generation: int) -> None:
        if self._is_stale(generation, "begin_opponent_turn"):
            return
        self._set_thinking(True)
        thinking_time = self.rng.uniform(
            self.config.thinking_time_min, self.config.thinking_time_max
        )
        self._schedule(thinking_time, self._play_opponent_move)

    def _play_opponent_move(self, generation: int) -> None:
        if self._is_stale(generation, "play_opponent_move"):
            return
        # for the type checker: a fresh generation always has a game
        assert self.game is not None

        move = select_move(
            self.game.board, self.computer_color, self.difficulty, self.rng, self.config
        )
        record = (
            self.game.apply_move(move.from_square, move.to_square) if move else None
        )
        self._set_thinking(False)
        if record is None:
            # no move available: the game is over (the caller must never re-query)
            logger.warning(f"chess.session.opponent no_move generation={generation}")
            self._notify_state_changed()
            return
        self._after_move(record)

    def _announce_terminal(self, generation: int) -> None:
        if self._is_stale(generation, "announce_terminal"):
            return
        # for the type checker: only scheduled once the game is over
        assert self.game is not None and self.game.terminal is not None
        for observer in self.observers:
            observer.on_terminal(self.game.terminal.kind, self.game.terminal.winner)

    # -- PRIVATE HELPERS ---
    def _holds_own_piece(self, square: Square) -> bool:
        # for the type checker: only called while a game is being played
        assert self.game is not None
        piece = self.game.board.piece_at(square)
        return piece is not None and piece.color == self.human_color

    def _schedule(self, delay: float, callback: Callable[[int], None]) -> None:
        """Run the callback later, tagged with the current generation."""
        generation = self.generation
        handle: Optional[ScheduledCall] = None
        fired = False

        def _run() -> None:
            nonlocal fired
            with self.lock:
                fired = True
                if handle in self._pending:
                    self._pending.remove(handle)
                callback(generation)

        handle = self.scheduler.call_later(delay, _run)
        # a synchronous scheduler has already run the callback
        if not fired:
            self._pending.append(handle)

    def _discard_pending(self) -> None:
        """New generation: cancel anything scheduled for the old one."""
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()
        self.generation += 1
        self.selected_square = None
        self._history_cleared_at = 0
        self._set_thinking(False)

    def _is_stale(self, generation: int, what: str) -> bool:
        if generation != self.generation or self.game is None:
            logger.info(
                f"chess.session.{what} discarded stale_generation={generation} generation={self.generation}"
            )
            return True
        return False

    def _set_thinking(self, thinking: bool) -> None:
        if self.opponent_thinking == thinking:
            return
        self.opponent_thinking = thinking
        for observer in self.observers:
            observer.on_opponent_thinking_changed(thinking)

    def _notify_state_changed(self) -> None:
        # for the type checker: only called while a game is being played
        assert self.game is not None
        for observer in self.observers:
            observer.on_state_changed(self.game)
