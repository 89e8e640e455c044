"""Unit tests for src/core/config.py"""

from datetime import timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.core.config import DEFAULT_DATABASE_URL, ProtocolConfig, database_url


def test_defaults() -> None:
    config = ProtocolConfig()
    assert config.stake == Decimal("0.01")
    assert config.protocol_fee == Decimal("0.001")
    assert config.pool == Decimal("0.02")
    assert config.winner_reward == Decimal("0.019")


def test_config_is_frozen() -> None:
    config = ProtocolConfig()
    with pytest.raises(ValidationError):
        config.stake = Decimal("1")


@pytest.mark.parametrize(
    "overrides",
    [
        {"stake": Decimal(0)},
        {"protocol_fee": Decimal("-0.001")},
        {"protocol_fee": Decimal("0.02")},  # more than one stake
        {"join_timeout": timedelta(0)},
        {"treasury": " "},
        {"max_invalid_reveals": 0},
    ],
)
def test_invalid_config(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        ProtocolConfig(**overrides)


def test_from_env() -> None:
    environ = {
        "ARENA_STAKE": "0.05",
        "ARENA_PROTOCOL_FEE": "0.005",
        "ARENA_TREASURY": "0xFEE",
        "ARENA_MOVE_TIMEOUT_SECONDS": "90",
        "ARENA_MAX_INVALID_REVEALS": "5",
        "UNRELATED": "ignored",
    }
    config = ProtocolConfig.from_env(environ)
    assert config.stake == Decimal("0.05")
    assert config.protocol_fee == Decimal("0.005")
    assert config.treasury == "0xFEE"
    assert config.move_timeout == timedelta(seconds=90)
    assert config.join_timeout == timedelta(hours=24)
    assert config.max_invalid_reveals == 5


def test_database_url() -> None:
    assert database_url({}) == DEFAULT_DATABASE_URL
    assert database_url({"ARENA_DATABASE_URL": "sqlite://"}) == "sqlite://"
