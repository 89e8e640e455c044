"""Unit tests for src/arena/settlement.py"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.arena.rules import RevealedMove
from src.arena.session import GameSession
from src.arena.settlement import (
    Payout,
    compute_payouts,
    resolve_forfeit,
    settle,
    total_staked,
)
from src.core.config import ProtocolConfig
from src.core.exceptions import AlreadyTerminalError, GameStateError
from src.core.shared_types import NO_PLAYER, GameType, PayoutReason, SessionState

A = "player_a"
B = "player_b"
STAKE = Decimal("0.01")
START = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
DIGEST_A = "0x" + "a" * 64
DIGEST_B = "0x" + "b" * 64


def make_session(state: SessionState, **overrides) -> GameSession:
    fields = dict(
        game_type=GameType.SNAKES_AND_LADDERS,
        player1=A,
        player2=B,
        state=state,
        stake=STAKE,
        created_at=START,
        last_action_time=START,
    )
    fields.update(overrides)
    return GameSession(**fields)


@pytest.fixture
def config() -> ProtocolConfig:
    return ProtocolConfig()


def test_finished_with_winner(config: ProtocolConfig) -> None:
    session = make_session(SessionState.FINISHED, winner=A)
    payouts = settle(session, config)
    assert payouts == [
        Payout(A, Decimal("0.019"), PayoutReason.WIN),
        Payout("treasury", Decimal("0.001"), PayoutReason.PROTOCOL_FEE),
    ]
    assert session.settled
    assert session.payouts == payouts


def test_finished_draw_refunds_minus_half_fee_each(config: ProtocolConfig) -> None:
    session = make_session(SessionState.FINISHED)
    assert settle(session, config) == [
        Payout(A, Decimal("0.0095"), PayoutReason.DRAW_REFUND),
        Payout(B, Decimal("0.0095"), PayoutReason.DRAW_REFUND),
        Payout("treasury", Decimal("0.001"), PayoutReason.PROTOCOL_FEE),
    ]


def test_expired_from_waiting_refunds_without_fee(config: ProtocolConfig) -> None:
    session = make_session(
        SessionState.EXPIRED, player2=NO_PLAYER, expired_from=SessionState.WAITING
    )
    assert settle(session, config) == [Payout(A, STAKE, PayoutReason.REFUND)]


def test_expired_mid_game_with_forfeit(config: ProtocolConfig) -> None:
    session = make_session(
        SessionState.EXPIRED, winner=B, expired_from=SessionState.IN_PROGRESS
    )
    assert settle(session, config) == [
        Payout(B, Decimal("0.019"), PayoutReason.FORFEIT),
        Payout("treasury", Decimal("0.001"), PayoutReason.PROTOCOL_FEE),
    ]


def test_settle_is_only_applied_once(config: ProtocolConfig) -> None:
    session = make_session(SessionState.FINISHED, winner=A)
    first = settle(session, config)

    with pytest.raises(AlreadyTerminalError):
        settle(session, config)
    assert session.payouts == first


def test_settle_requires_terminal_state(config: ProtocolConfig) -> None:
    session = make_session(SessionState.IN_PROGRESS)
    with pytest.raises(GameStateError):
        settle(session, config)
    assert not session.settled


def test_zero_fee_pays_no_treasury() -> None:
    config = ProtocolConfig(protocol_fee=Decimal(0))
    session = make_session(SessionState.FINISHED, winner=B)
    assert compute_payouts(session, config) == [Payout(B, Decimal("0.02"), PayoutReason.WIN)]


@pytest.mark.parametrize(
    "session",
    [
        make_session(SessionState.FINISHED, winner=A),
        make_session(SessionState.FINISHED),
        make_session(SessionState.EXPIRED, player2=NO_PLAYER, expired_from=SessionState.WAITING),
        make_session(SessionState.EXPIRED, winner=B, expired_from=SessionState.IN_PROGRESS),
        make_session(SessionState.EXPIRED, expired_from=SessionState.IN_PROGRESS),
    ],
)
def test_payouts_add_up_to_stakes(session: GameSession, config: ProtocolConfig) -> None:
    payouts = settle(session, config)
    assert sum(payout.amount for payout in payouts) == total_staked(session)


# -- FORFEIT POLICY --
def test_forfeit_to_the_only_revealer(config: ProtocolConfig) -> None:
    session = make_session(
        SessionState.IN_PROGRESS,
        commitments={A: DIGEST_A, B: DIGEST_B},
        reveals={B: RevealedMove(3, 456)},
    )
    assert resolve_forfeit(session, config) == B


def test_forfeit_to_the_only_committer(config: ProtocolConfig) -> None:
    session = make_session(SessionState.IN_PROGRESS, commitments={A: DIGEST_A})
    assert resolve_forfeit(session, config) == A


@pytest.mark.parametrize(
    "commitments",
    [
        {},
        {A: DIGEST_A, B: DIGEST_B},
    ],
)
def test_no_forfeit_when_both_equally_responsive(
    commitments: dict[str, str], config: ProtocolConfig
) -> None:
    session = make_session(SessionState.IN_PROGRESS, commitments=commitments)
    assert resolve_forfeit(session, config) is None


def test_player_out_of_strikes_forfeits(config: ProtocolConfig) -> None:
    session = make_session(
        SessionState.IN_PROGRESS,
        commitments={A: DIGEST_A, B: DIGEST_B},
        invalid_reveals={A: config.max_invalid_reveals},
    )
    assert resolve_forfeit(session, config) == B


def test_player_below_strike_limit_is_still_eligible(config: ProtocolConfig) -> None:
    session = make_session(
        SessionState.IN_PROGRESS,
        commitments={A: DIGEST_A, B: DIGEST_B},
        invalid_reveals={A: config.max_invalid_reveals - 1},
    )
    assert resolve_forfeit(session, config) is None
