"""Database tables / schema"""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGameSession(Base):
    __tablename__ = "game_sessions"
    # AUTOINCREMENT so SQLite never hands out an ID twice
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_type: Mapped[str]
    player1: Mapped[str]
    player2: Mapped[str] = mapped_column(default="")
    state: Mapped[str] = mapped_column(index=True)
    stake: Mapped[str] = mapped_column(String(78))  # Decimal stored as text, no float rounding
    winner: Mapped[str] = mapped_column(default="")
    round: Mapped[int] = mapped_column(default=1)
    commitments: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    reveals: Mapped[dict[str, dict[str, str]]] = mapped_column(JSON, default=dict)
    game_data: Mapped[dict] = mapped_column(JSON, default=dict)
    invalid_reveals: Mapped[dict[str, int]] = mapped_column(JSON, default=dict)
    settled: Mapped[bool] = mapped_column(default=False)
    payouts: Mapped[list[dict[str, str]]] = mapped_column(JSON, default=list)
    expired_from: Mapped[str] = mapped_column(default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    last_action_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
