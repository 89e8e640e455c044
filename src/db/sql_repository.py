"""Implementation of (Game)Repository using SQLAlchemy"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from src.core.models import PayoutModel, SessionModel
from src.core.shared_types import SessionState
from src.db.schema import DBGameSession

ACTIVE_STATES = [str(SessionState.WAITING), str(SessionState.IN_PROGRESS)]


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_session(self, game_id: int) -> SessionModel | None:
        """Get session by ID, if record exists."""
        session_db = self._fetch_session(game_id)
        if session_db:
            return self._to_model(session_db)
        return None

    def create_session(self, session: SessionModel) -> tuple[SessionModel, int]:
        """Store new session and return the stored data + newly allocated session ID."""
        session_db = DBGameSession()
        self._copy_into(session_db, session)
        self.db.add(session_db)
        self.db.commit()
        self.db.refresh(session_db)
        return self._to_model(session_db), session_db.id

    def update_session(self, game_id: int, session: SessionModel) -> SessionModel | None:
        """Overwrite an existing record."""
        session_db = self._fetch_session(game_id)
        if not session_db:
            return None
        self._copy_into(session_db, session)
        self.db.commit()
        self.db.refresh(session_db)
        return self._to_model(session_db)

    def iter_active_ids(self) -> Iterator[int]:
        """IDs of the sessions that are waiting or in progress, in ascending order."""
        query = (
            select(DBGameSession.id)
            .where(DBGameSession.state.in_(ACTIVE_STATES))
            .order_by(DBGameSession.id)
        )
        yield from self.db.scalars(query).all()

    def game_counter(self) -> int:
        return self.db.scalar(select(func.max(DBGameSession.id))) or 0

    def _fetch_session(self, game_id: int) -> DBGameSession | None:
        query = select(DBGameSession).where(DBGameSession.id == game_id)
        return self.db.scalar(query)

    def _copy_into(self, session_db: DBGameSession, session: SessionModel) -> None:
        """Write the data transfer model onto the SQLAlchemy model."""
        session_db.game_type = session.game_type
        session_db.player1 = session.player1
        session_db.player2 = session.player2
        session_db.state = session.state
        session_db.stake = str(session.stake)
        session_db.winner = session.winner
        session_db.round = session.round
        session_db.commitments = dict(session.commitments)
        # uint256 values do not fit every JSON backend's number type
        session_db.reveals = {
            player: {"move": str(data["move"]), "nonce": str(data["nonce"])}
            for player, data in session.reveals.items()
        }
        session_db.game_data = dict(session.game_data)
        session_db.invalid_reveals = dict(session.invalid_reveals)
        session_db.settled = session.settled
        session_db.payouts = [
            {"recipient": payout.recipient, "amount": str(payout.amount), "reason": payout.reason}
            for payout in session.payouts
        ]
        session_db.expired_from = session.expired_from
        session_db.created_at = session.created_at
        session_db.last_action_time = session.last_action_time

    def _to_model(self, session_db: DBGameSession) -> SessionModel:
        """Convert SQLAlchemy model to data transfer model."""
        return SessionModel(
            game_type=session_db.game_type,
            player1=session_db.player1,
            player2=session_db.player2,
            state=session_db.state,
            stake=Decimal(session_db.stake),
            created_at=_as_utc(session_db.created_at),
            last_action_time=_as_utc(session_db.last_action_time),
            winner=session_db.winner,
            round=session_db.round,
            commitments=dict(session_db.commitments),
            reveals={
                player: {"move": int(data["move"]), "nonce": int(data["nonce"])}
                for player, data in session_db.reveals.items()
            },
            game_data=dict(session_db.game_data),
            invalid_reveals=dict(session_db.invalid_reveals),
            settled=session_db.settled,
            payouts=[
                PayoutModel(
                    recipient=payout["recipient"],
                    amount=Decimal(payout["amount"]),
                    reason=payout["reason"],
                )
                for payout in session_db.payouts
            ],
            expired_from=session_db.expired_from,
        )


def _as_utc(moment: datetime) -> datetime:
    """SQLite drops the timezone on the way back; every timestamp we store is UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
