"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Generator, Optional

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.chess.game import Game, MoveRecord
from src.chess.pieces import Color
from src.core.config import EngineSettings
from src.core.shared_types import Status
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


# --- DEFERRED CALLBACKS ---
class ManualCall:
    """A scheduled callback that only runs when the test says so."""

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        """Run the callback, even if cancelled (mimics a timer that went off right before being cancelled)."""
        self.fired = True
        self.callback()


class ManualScheduler:
    """Scheduler fake: collects callbacks so tests can step through them deterministically."""

    def __init__(self) -> None:
        self.calls: list[ManualCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualCall:
        call = ManualCall(delay, callback)
        self.calls.append(call)
        return call

    @property
    def pending(self) -> list[ManualCall]:
        return [call for call in self.calls if not (call.cancelled or call.fired)]

    def run_next(self) -> ManualCall:
        call = self.pending[0]
        call.fire()
        return call

    def run_all(self, limit: int = 50) -> None:
        while self.pending and limit > 0:
            self.run_next()
            limit -= 1


class ImmediateScheduler:
    """Scheduler fake that runs every callback right away, before call_later returns."""

    def __init__(self) -> None:
        self.calls: list[ManualCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualCall:
        call = ManualCall(delay, callback)
        self.calls.append(call)
        call.fire()
        return call


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def fast_settings() -> EngineSettings:
    """Default tunables (explicitly constructed, so the tests do not depend on the environment)."""
    return EngineSettings(
        easy_random_rate=0.6,
        max_evaluated_moves=15,
        opponent_move_delay=0.5,
        thinking_time_min=1.0,
        thinking_time_max=2.5,
        terminal_notice_delay=0.5,
    )


@pytest.fixture
def instant_settings() -> EngineSettings:
    """No waiting at all: the computer replies as soon as a scheduler gets to run it."""
    return EngineSettings(
        opponent_move_delay=0.0,
        thinking_time_min=0.0,
        thinking_time_max=0.0,
        terminal_notice_delay=0.0,
    )


# --- OBSERVER ---
class RecordingObserver:
    """Remembers every notification it received, in order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def on_state_changed(self, game: Game) -> None:
        self.events.append(("state", game.current_player))

    def on_move_applied(self, record: MoveRecord) -> None:
        self.events.append(("move", record.notation))

    def on_terminal(self, kind: Status, winner: Optional[Color]) -> None:
        self.events.append(("terminal", (kind, winner)))

    def on_opponent_thinking_changed(self, thinking: bool) -> None:
        self.events.append(("thinking", thinking))

    def of_kind(self, kind: str) -> list[object]:
        return [payload for event, payload in self.events if event == kind]


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()
