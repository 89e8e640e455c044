"""Notifications of session state transitions, published after the change has been persisted."""

import logging
from dataclasses import dataclass
from typing import Callable

from src.core.shared_types import GameType, Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameCreated:
    game_id: int
    game_type: GameType
    player1: Identity


@dataclass(frozen=True)
class PlayerJoined:
    game_id: int
    player2: Identity


@dataclass(frozen=True)
class MoveCommitted:
    game_id: int
    player: Identity
    round: int


@dataclass(frozen=True)
class MoveRevealed:
    game_id: int
    player: Identity
    round: int


@dataclass(frozen=True)
class RoundPlayed:
    game_id: int
    round: int
    game_data: dict


@dataclass(frozen=True)
class GameFinished:
    game_id: int
    winner: Identity  # empty for a draw


@dataclass(frozen=True)
class GameExpired:
    game_id: int
    winner: Identity  # forfeit recipient, empty when everybody was refunded


Event = GameCreated | PlayerJoined | MoveCommitted | MoveRevealed | RoundPlayed | GameFinished | GameExpired
Subscriber = Callable[[Event], None]


class EventBus:
    """Fan out events to subscribers in subscription order."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.remove(subscriber)

    def publish(self, event: Event) -> None:
        logger.debug("Publishing %s", event)
        for subscriber in self._subscribers:
            subscriber(event)
