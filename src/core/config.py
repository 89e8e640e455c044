"""Protocol constants and runtime configuration."""

import os
from datetime import timedelta
from decimal import Decimal
from typing import Mapping, Self

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

DEFAULT_DATABASE_URL = "sqlite:///arena.db"


class ProtocolConfig(BaseModel):
    """Fixed parameters of the staked game protocol. Shared by every session."""

    model_config = ConfigDict(frozen=True)

    stake: Decimal = Decimal("0.01")
    protocol_fee: Decimal = Decimal("0.001")  # 10% of one stake
    treasury: str = "treasury"
    join_timeout: timedelta = timedelta(hours=24)
    move_timeout: timedelta = timedelta(hours=1)
    max_invalid_reveals: int = 3
    ludo_max_rounds: int = 200

    @field_validator("stake")
    @classmethod
    def validate_stake(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError(f"Stake must be positive, got {value}")
        return value

    @field_validator("join_timeout", "move_timeout")
    @classmethod
    def validate_timeout(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError(f"Timeouts must be positive, got {value}")
        return value

    @field_validator("treasury")
    @classmethod
    def validate_treasury(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Treasury identity cannot be empty.")
        return value

    @field_validator("max_invalid_reveals", "ludo_max_rounds")
    @classmethod
    def validate_positive_count(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"Expected a count >= 1, got {value}")
        return value

    @model_validator(mode="after")
    def validate_fee(self) -> Self:
        # fee is taken out of the pool, so it can never exceed what one player puts in
        if not Decimal(0) <= self.protocol_fee <= self.stake:
            raise ValueError(
                f"Protocol fee must be between 0 and the stake ({self.stake}), got {self.protocol_fee}"
            )
        return self

    @property
    def pool(self) -> Decimal:
        return 2 * self.stake

    @property
    def winner_reward(self) -> Decimal:
        return self.pool - self.protocol_fee

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] = os.environ, prefix: str = "ARENA_"
    ) -> Self:
        """Build a config from environment variables, falling back to the defaults.

        ARENA_STAKE, ARENA_PROTOCOL_FEE, ARENA_TREASURY, ARENA_JOIN_TIMEOUT_SECONDS,
        ARENA_MOVE_TIMEOUT_SECONDS, ARENA_MAX_INVALID_REVEALS, ARENA_LUDO_MAX_ROUNDS
        """
        overrides: dict[str, object] = {}
        for name in ("stake", "protocol_fee", "treasury", "max_invalid_reveals", "ludo_max_rounds"):
            key = f"{prefix}{name.upper()}"
            if key in environ:
                overrides[name] = environ[key]
        for name in ("join_timeout", "move_timeout"):
            key = f"{prefix}{name.upper()}_SECONDS"
            if key in environ:
                overrides[name] = timedelta(seconds=float(environ[key]))
        return cls(**overrides)


def database_url(environ: Mapping[str, str] = os.environ) -> str:
    return environ.get("ARENA_DATABASE_URL", DEFAULT_DATABASE_URL)
