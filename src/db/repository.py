"""Protocol repository: where finished and unfinished games against the computer are kept (SQLAlchemy version in sql_repository.py)"""

from typing import Protocol
from uuid import UUID

from src.core.models import GameModel


class GameRepository(Protocol):
    """Archive of games. Every change of a live game overwrites its snapshot."""

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Snapshot stored under the id (None when there is none)."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Archive a freshly started game. Returns the stored snapshot and the id it got."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite the snapshot of a known game (None for an unknown id)."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Drop a game from the archive, returning its last snapshot."""
        ...
