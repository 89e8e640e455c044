"""
Settlement & payout policy.

Runs exactly once per session, at the moment it becomes terminal:

Finished, winner          winner gets 2*stake - fee, treasury gets fee
Finished, draw            each player gets stake - fee/2, treasury gets fee
Expired from Waiting      player1 gets the stake back, no fee
Expired from InProgress   forfeit to the responsive party (paid like a win),
                          or refunded like a draw when nobody can be singled out

The payouts of a session always add up to what was staked into it.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Self

from src.core.config import ProtocolConfig
from src.core.exceptions import AlreadyTerminalError, GameStateError
from src.core.models import PayoutModel
from src.core.shared_types import NO_PLAYER, Identity, PayoutReason, SessionState

if TYPE_CHECKING:
    from src.arena.session import GameSession


@dataclass(frozen=True)
class Payout:
    recipient: Identity
    amount: Decimal
    reason: PayoutReason

    @classmethod
    def from_model(cls, model: PayoutModel) -> Self:
        return cls(model.recipient, Decimal(model.amount), PayoutReason(model.reason))

    def to_model(self) -> PayoutModel:
        return PayoutModel(recipient=self.recipient, amount=self.amount, reason=str(self.reason))


def settle(session: "GameSession", config: ProtocolConfig) -> list[Payout]:
    """Compute and record the payouts of a terminal session. A second call is rejected."""
    if not session.state.is_terminal:
        raise GameStateError(f"Only finished or expired sessions settle. state: {session.state}")
    if session.settled:
        raise AlreadyTerminalError("Session has already been settled.")

    payouts = compute_payouts(session, config)
    paid = sum((payout.amount for payout in payouts), Decimal(0))
    if paid > total_staked(session):
        raise GameStateError(f"Payouts ({paid}) would exceed the staked funds ({total_staked(session)}).")

    session.payouts = payouts
    session.settled = True
    return payouts


def total_staked(session: "GameSession") -> Decimal:
    players = 2 if session.player2 != NO_PLAYER else 1
    return session.stake * players


def compute_payouts(session: "GameSession", config: ProtocolConfig) -> list[Payout]:
    if session.state == SessionState.EXPIRED and session.expired_from == SessionState.WAITING:
        return [Payout(session.player1, session.stake, PayoutReason.REFUND)]

    fee = config.protocol_fee
    if session.winner != NO_PLAYER:
        reason = PayoutReason.WIN if session.state == SessionState.FINISHED else PayoutReason.FORFEIT
        payouts = [Payout(session.winner, total_staked(session) - fee, reason)]
    else:
        refund = session.stake - fee / 2
        payouts = [Payout(player, refund, PayoutReason.DRAW_REFUND) for player in session.participants]
    payouts.append(Payout(config.treasury, fee, PayoutReason.PROTOCOL_FEE))
    return [payout for payout in payouts if payout.amount > 0]


def resolve_forfeit(session: "GameSession", config: ProtocolConfig) -> Optional[Identity]:
    """
    Who receives the pool when an in-progress session stalls.
    ----
    1. exactly one participant revealed this round --> that participant
    2. exactly one participant committed this round --> that participant
    3. one participant used up their failed reveals --> the other one
    4. otherwise nobody (both refunded like a draw)

    A participant who used up their failed reveals is never the recipient.
    """
    eligible = [
        player
        for player in session.participants
        if session.invalid_reveals.get(player, 0) < config.max_invalid_reveals
    ]
    revealed = [player for player in eligible if player in session.reveals]
    if len(revealed) == 1:
        return revealed[0]
    committed = [player for player in eligible if player in session.commitments]
    if len(committed) == 1:
        return committed[0]
    if len(eligible) == 1:
        return eligible[0]
    return None
