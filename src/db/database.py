"""Generate database sessions"""

from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import database_url
from src.db.schema import Base


def make_session_factory(url: str | None = None, echo: bool = False) -> sessionmaker[Session]:
    """Engine + session factory for the given URL (ARENA_DATABASE_URL by default). Creates missing tables."""
    engine: Engine = create_engine(url or database_url(), echo=echo)
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


def get_db(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
