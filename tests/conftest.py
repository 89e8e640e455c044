"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import ProtocolConfig
from src.db.memory_repository import InMemoryGameRepository
from src.db.schema import Base
from src.services.custody import InMemoryCustody
from src.services.events import EventBus
from src.services.game_service import GameService

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

START = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now += delta


@pytest.fixture
def db_session_repo() -> Iterator[Session]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def config() -> ProtocolConfig:
    return ProtocolConfig()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def custody() -> InMemoryCustody:
    return InMemoryCustody()


@pytest.fixture
def events() -> tuple[EventBus, list]:
    """Event bus + the list every published event ends up in."""
    bus = EventBus()
    received: list = []
    bus.subscribe(received.append)
    return bus, received


@pytest.fixture
def service(
    config: ProtocolConfig,
    clock: FrozenClock,
    custody: InMemoryCustody,
    events: tuple[EventBus, list],
) -> GameService:
    """Service wired to in-memory fakes of the ledger, custody and clock."""
    bus, _ = events
    return GameService(
        InMemoryGameRepository(), custody, config=config, clock=clock, events=bus
    )
