"""
Boundary layer data model(s).

These objects are used to communicate with the Service.
Both the domain layer (src/arena) and the persistence layer (src/db) convert to and from them,
so neither depends on the other's internal representation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

# Type aliases to make SessionModel easier to read
PlayerName = str
Digest = str


@dataclass
class PayoutModel:
    recipient: PlayerName
    amount: Decimal
    reason: str


@dataclass
class SessionModel:
    """Transport-safe representation of a game session used between Service, DB, and domain layers."""

    game_type: str
    player1: PlayerName
    player2: PlayerName
    state: str
    stake: Decimal
    created_at: datetime
    last_action_time: datetime
    winner: PlayerName = ""
    round: int = 1
    commitments: dict[PlayerName, Digest] = field(default_factory=dict)
    reveals: dict[PlayerName, dict[str, int]] = field(default_factory=dict)
    game_data: dict = field(default_factory=dict)
    invalid_reveals: dict[PlayerName, int] = field(default_factory=dict)
    settled: bool = False
    payouts: list[PayoutModel] = field(default_factory=list)
    expired_from: str = ""
