"""Requests and Response models"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from src.arena.commitment import UINT256_MAX, normalize_digest
from src.core.exceptions import InvalidCommitmentError, InvalidRequestError
from src.core.shared_types import GameType, normalize_identity

PlayerName = str


def _validate_identity(value: str) -> str:
    """Wallet addresses are case-insensitive, so 0xAbC... and 0xabc... are the same player."""
    identity = normalize_identity(value)
    if not identity:
        raise InvalidRequestError("Player identity cannot be empty.")
    return identity


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    game_type: GameType
    player: PlayerName
    stake: Decimal

    @field_validator("game_type", mode="before")
    @classmethod
    def validate_game_type(cls, value: Any) -> Any:
        """Accept the ledger's numeric codes (0, 1) as well as the names."""
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return GameType.from_code(value)
            except ValueError as e:
                raise InvalidRequestError(str(e)) from e
        return value

    @field_validator("player")
    @classmethod
    def validate_player(cls, value: str) -> str:
        return _validate_identity(value)


class JoinGameRequest(BaseModel):
    game_id: int
    player: PlayerName
    stake: Decimal

    @field_validator("player")
    @classmethod
    def validate_player(cls, value: str) -> str:
        return _validate_identity(value)


class CommitMoveRequest(BaseModel):
    game_id: int
    player: PlayerName
    commitment: str

    @field_validator("player")
    @classmethod
    def validate_player(cls, value: str) -> str:
        return _validate_identity(value)

    @field_validator("commitment")
    @classmethod
    def validate_commitment(cls, value: str) -> str:
        try:
            return normalize_digest(value)
        except InvalidCommitmentError as e:
            raise InvalidRequestError(str(e)) from e


class RevealMoveRequest(BaseModel):
    game_id: int
    player: PlayerName
    move: int
    nonce: int

    @field_validator("player")
    @classmethod
    def validate_player(cls, value: str) -> str:
        return _validate_identity(value)

    @field_validator(*["move", "nonce"])
    @classmethod
    def validate_uint256(cls, value: int) -> int:
        if not 0 <= value <= UINT256_MAX:
            raise InvalidRequestError(
                f"Moves and nonces are unsigned 256-bit integers, got {value}"
            )
        return value


class ExpireGameRequest(BaseModel):
    game_id: int
    caller: Optional[PlayerName] = None  # anyone may ask, a participant or a watcher

    @field_validator("caller")
    @classmethod
    def validate_caller(cls, value: Optional[str]) -> Optional[str]:
        return normalize_identity(value) if value is not None else None


class GetGameRequest(BaseModel):
    game_id: int


# --- RESPONSE MODELS ---
class PayoutResponse(BaseModel):
    recipient: PlayerName
    amount: Decimal
    reason: str


class GameResponse(BaseModel):
    game_id: int
    game_type: GameType
    player1: PlayerName
    player2: PlayerName
    state: str
    stake: Decimal
    winner: PlayerName
    round: int
    commitments: dict[PlayerName, str]
    revealed: list[PlayerName]
    invalid_reveals: dict[PlayerName, int]
    game_data: dict
    created_at: datetime
    last_action_time: datetime
    payouts: list[PayoutResponse]
