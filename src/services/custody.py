"""
Fund custody: escrow stakes when players enter a session, pay them out when it settles.

The in-memory implementation keeps a per-session ledger and refuses any payout that would
take more out of a session than was escrowed into it.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Protocol

from src.core.exceptions import CustodyError
from src.core.shared_types import Identity

logger = logging.getLogger(__name__)


class FundCustody(Protocol):
    """Atomic fund custody primitive."""

    def escrow(self, game_id: int, payer: Identity, amount: Decimal) -> None:
        """Take a stake from a player into the session's escrow."""
        ...

    def pay(self, game_id: int, recipient: Identity, amount: Decimal) -> None:
        """Release funds from the session's escrow to a recipient."""
        ...

    def escrowed(self, game_id: int) -> Decimal:
        ...

    def paid_out(self, game_id: int) -> Decimal:
        ...


class InMemoryCustody:
    """Per-session escrow ledger + recipient balances."""

    def __init__(self) -> None:
        self._escrowed: defaultdict[int, Decimal] = defaultdict(Decimal)
        self._paid: defaultdict[int, Decimal] = defaultdict(Decimal)
        self._balances: defaultdict[Identity, Decimal] = defaultdict(Decimal)
        self.entries: list[tuple[int, str, Identity, Decimal]] = []

    def escrow(self, game_id: int, payer: Identity, amount: Decimal) -> None:
        _assert_positive(amount)
        self._escrowed[game_id] += amount
        self.entries.append((game_id, "escrow", payer, amount))
        logger.info("Escrowed %s from %s into game %s", amount, payer, game_id)

    def pay(self, game_id: int, recipient: Identity, amount: Decimal) -> None:
        _assert_positive(amount)
        if self._paid[game_id] + amount > self._escrowed[game_id]:
            raise CustodyError(
                f"Paying {amount} to {recipient} would exceed the funds escrowed in game {game_id} "
                f"(escrowed: {self._escrowed[game_id]}, already paid: {self._paid[game_id]})."
            )
        self._paid[game_id] += amount
        self._balances[recipient] += amount
        self.entries.append((game_id, "pay", recipient, amount))
        logger.info("Paid %s from game %s to %s", amount, game_id, recipient)

    def escrowed(self, game_id: int) -> Decimal:
        return self._escrowed[game_id]

    def paid_out(self, game_id: int) -> Decimal:
        return self._paid[game_id]

    def balance_of(self, identity: Identity) -> Decimal:
        """Total received by an identity across all sessions."""
        return self._balances[identity]


def _assert_positive(amount: Decimal) -> None:
    if amount <= 0:
        raise CustodyError(f"Amounts moved through custody must be positive, got {amount}")
