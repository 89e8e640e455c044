"""In-memory implementation of the GameRepository. Stands in for the external ledger in tests and local runs."""

from copy import deepcopy
from typing import Iterator

from src.core.models import SessionModel
from src.core.shared_types import SessionState

ACTIVE_STATES = (SessionState.WAITING, SessionState.IN_PROGRESS)


class InMemoryGameRepository:
    """Sessions stored in a dictionary. IDs come from a counter that only ever goes up."""

    def __init__(self) -> None:
        self._sessions: dict[int, SessionModel] = {}
        self._counter = 0

    def get_session(self, game_id: int) -> SessionModel | None:
        """Get session by ID, if record exists."""
        session = self._sessions.get(game_id)
        return deepcopy(session) if session is not None else None

    def create_session(self, session: SessionModel) -> tuple[SessionModel, int]:
        """Store new session and return the stored data + newly allocated session ID."""
        self._counter += 1
        self._sessions[self._counter] = deepcopy(session)
        return deepcopy(session), self._counter

    def update_session(self, game_id: int, session: SessionModel) -> SessionModel | None:
        """Overwrite an existing record."""
        if game_id not in self._sessions:
            return None
        self._sessions[game_id] = deepcopy(session)
        return deepcopy(session)

    def iter_active_ids(self) -> Iterator[int]:
        """IDs of the sessions that are waiting or in progress, in ascending order."""
        active = [
            game_id
            for game_id, session in sorted(self._sessions.items())
            if session.state in ACTIVE_STATES
        ]
        yield from active

    def game_counter(self) -> int:
        return self._counter
