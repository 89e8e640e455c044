"""Protocol repository: the narrow interface to the authoritative session store (a ledger, a referee service, SQL, or memory)."""

from typing import Iterator, Protocol

from src.core.models import SessionModel


class GameRepository(Protocol):
    """Persistence layer orchestration"""

    def get_session(self, game_id: int) -> SessionModel | None:
        """Get session by ID, if record exists."""
        ...

    def create_session(self, session: SessionModel) -> tuple[SessionModel, int]:
        """Store new session and return the stored data + newly allocated session ID."""
        ...

    def update_session(self, game_id: int, session: SessionModel) -> SessionModel | None:
        """Overwrite an existing record."""
        ...

    def iter_active_ids(self) -> Iterator[int]:
        """IDs of the sessions that are waiting or in progress, in ascending order."""
        ...

    def game_counter(self) -> int:
        """Number of session IDs allocated so far (the highest ID in use)."""
        ...
