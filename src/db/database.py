"""Generate database session"""

from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import settings
from src.db.schema import Base


def make_engine(database_url: Optional[str] = None) -> Engine:
    """Engine for the configured database (CHESS_DATABASE_URL), or the given URL. Tables get created if missing."""
    engine = create_engine(
        database_url or settings.database_url, echo=settings.database_echo
    )
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return engine


def get_db(engine: Optional[Engine] = None) -> Generator[Session, None, None]:
    db = sessionmaker(bind=engine or make_engine())()
    try:
        yield db
    finally:
        db.close()
