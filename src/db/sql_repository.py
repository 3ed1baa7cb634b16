"""GameRepository backed by SQLAlchemy: one row per game, the move lists in JSON columns"""

from uuid import UUID, uuid4

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameModel
from src.db.schema import DBGame


class SQLGameRepository:
    """Works on a caller-provided Session (see database.get_db). Every write commits immediately."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Snapshot of the game, if a row with this id exists."""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Insert a row for a new game. The id is generated here."""
        new_id = uuid4()
        game_db = DBGame(id=new_id)
        self._copy_into(game_db, game)
        self.db.add(game_db)
        self.db.commit()
        self.db.refresh(game_db)
        logger.debug(f"chess.db.create_game game_id={new_id}")
        return self._to_model(game_db), new_id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite the stored snapshot of the game."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        self._copy_into(game_db, game)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Delete the row (returns what was stored in it)."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.commit()
        logger.debug(f"chess.db.delete_game game_id={game_id}")
        return game_model

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _copy_into(self, game_db: DBGame, game: GameModel) -> None:
        # NOTE: assign fresh lists, so SQLAlchemy notices the JSON columns changed
        game_db.board = game.board
        game_db.current_player = game.current_player
        game_db.difficulty = game.difficulty
        game_db.moves_uci = list(game.moves_uci)
        game_db.notations = list(game.notations)
        game_db.status = game.status
        game_db.winner = game.winner

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            board=game_db.board,
            current_player=game_db.current_player,
            difficulty=game_db.difficulty,
            moves_uci=list(game_db.moves_uci),
            notations=list(game_db.notations),
            status=game_db.status,
            winner=game_db.winner,
        )
