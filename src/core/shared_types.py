"""
Type definitions used across layers
"""

import re
from enum import StrEnum
from typing import Self

# Participant identity, e.g. a wallet address. The empty string is the "no player" sentinel.
Identity = str
NO_PLAYER: Identity = ""

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_identity(identity: str) -> Identity:
    """Canonical form of an identity: surrounding whitespace removed, hex addresses lowercased."""
    identity = identity.strip()
    if _ADDRESS_PATTERN.match(identity):
        return identity.lower()
    return identity


class GameType(StrEnum):
    SNAKES_AND_LADDERS = "snakes and ladders"
    LUDO = "ludo"

    @classmethod
    def from_code(cls, code: int) -> Self:
        """Numeric game type as used by the ledger interface (0 = Snakes & Ladders, 1 = Ludo)."""
        members = list(cls)
        if not 0 <= code < len(members):
            raise ValueError(f"Unknown game type code: {code}")
        return members[code]

    @property
    def code(self) -> int:
        return list(type(self)).index(self)


class SessionState(StrEnum):
    WAITING = "waiting"
    IN_PROGRESS = "in progress"
    FINISHED = "finished"
    EXPIRED = "expired"

    @property
    def rank(self) -> int:
        """Position in the ordering Waiting < InProgress < {Finished, Expired}."""
        return _STATE_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.FINISHED, SessionState.EXPIRED)


_STATE_RANK = {
    SessionState.WAITING: 0,
    SessionState.IN_PROGRESS: 1,
    SessionState.FINISHED: 2,
    SessionState.EXPIRED: 2,
}


class PayoutReason(StrEnum):
    WIN = "win"
    DRAW_REFUND = "draw refund"
    FORFEIT = "forfeit"
    REFUND = "refund"
    PROTOCOL_FEE = "protocol fee"
