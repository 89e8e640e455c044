"""
Game specific rules, plugged into the session state machine by GameType.

A rule set takes the revealed moves of both participants (plus the current game_data)
and returns the next game_data and, if the game is over, the outcome.

Rolls are derived from a participant's own move combined with the *opponent's* nonce.
Neither participant knows the opponent's nonce at commit time, so nobody can pick their own roll.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from src.core.config import ProtocolConfig
from src.core.shared_types import GameType, Identity


@dataclass(frozen=True)
class RevealedMove:
    move: int
    nonce: int


@dataclass
class TurnResult:
    """Outcome of one commit-reveal round. finished with winner None means a draw."""

    game_data: dict
    finished: bool
    winner: Optional[Identity] = None

    @property
    def is_draw(self) -> bool:
        return self.finished and self.winner is None


class GameRules(Protocol):
    """Interface for a game type's rules."""

    def initial_data(self, player1: Identity, player2: Identity) -> dict:
        """Starting game_data once both players are known."""
        ...

    def play_turn(
        self, game_data: dict, moves: dict[Identity, RevealedMove], round: int
    ) -> TurnResult:
        """Apply one round of revealed moves."""
        ...


def derive_rolls(moves: dict[Identity, RevealedMove], sides: int) -> dict[Identity, int]:
    """Roll in [1, sides] for each participant: (own move + opponent nonce) mod sides + 1."""
    if len(moves) != 2:
        raise ValueError(f"Expected revealed moves of exactly two players, got {len(moves)}")
    (player_a, move_a), (player_b, move_b) = moves.items()
    return {
        player_a: (move_a.move + move_b.nonce) % sides + 1,
        player_b: (move_b.move + move_a.nonce) % sides + 1,
    }


# --- SNAKES & LADDERS ---
BOARD_SIZE = 100
SNAKES = {16: 6, 47: 26, 49: 11, 56: 53, 62: 19, 64: 60, 87: 24, 93: 73, 95: 75, 98: 78}
LADDERS = {1: 38, 4: 14, 9: 31, 21: 42, 28: 84, 36: 44, 51: 67, 71: 91, 80: 100}


class SnakesAndLaddersRules:
    """
    Single round race.
    ----
    Each token starts off the board and is moved to the square given by its roll (1..100).
    Snakes and ladders on the landing square are followed. The higher square wins, equal squares draw.
    """

    def initial_data(self, player1: Identity, player2: Identity) -> dict:
        return {"positions": {player1: 0, player2: 0}, "rolls": {}}

    def play_turn(
        self, game_data: dict, moves: dict[Identity, RevealedMove], round: int
    ) -> TurnResult:
        rolls = derive_rolls(moves, BOARD_SIZE)
        positions = dict(game_data.get("positions", {}))
        for player, roll in rolls.items():
            positions[player] = follow_jumps(min(positions.get(player, 0) + roll, BOARD_SIZE))

        new_data = {"positions": positions, "rolls": rolls}
        (player_a, square_a), (player_b, square_b) = (
            (player, positions[player]) for player in rolls
        )
        if square_a == square_b:
            return TurnResult(new_data, finished=True, winner=None)
        winner = player_a if square_a > square_b else player_b
        return TurnResult(new_data, finished=True, winner=winner)


def follow_jumps(square: int) -> int:
    if square in SNAKES:
        return SNAKES[square]
    return LADDERS.get(square, square)


# --- LUDO ---
BASE = -1
START = 0
HOME = 57


class LudoRules:
    """
    Multi round race with one token per player.
    ----
    A token leaves base only on a 6 and is placed on the start step.
    Afterwards it advances by its die (1..6) and must reach the home step exactly, overshooting means it stays put.
    First token home wins. Both home in the same round, or running out of rounds, is a draw.
    """

    def __init__(self, max_rounds: int = 200) -> None:
        self.max_rounds = max_rounds

    def initial_data(self, player1: Identity, player2: Identity) -> dict:
        return {"positions": {player1: BASE, player2: BASE}, "rolls": {}}

    def play_turn(
        self, game_data: dict, moves: dict[Identity, RevealedMove], round: int
    ) -> TurnResult:
        rolls = derive_rolls(moves, 6)
        positions = dict(game_data.get("positions", {}))
        for player, die in rolls.items():
            positions[player] = advance_token(positions.get(player, BASE), die)

        new_data = {"positions": positions, "rolls": rolls}
        home = [player for player in rolls if positions[player] == HOME]
        if len(home) == 1:
            return TurnResult(new_data, finished=True, winner=home[0])
        if len(home) == 2 or round >= self.max_rounds:
            return TurnResult(new_data, finished=True, winner=None)
        return TurnResult(new_data, finished=False)


def advance_token(position: int, die: int) -> int:
    if position == BASE:
        return START if die == 6 else BASE
    if position + die > HOME:
        return position
    return position + die


def rules_for(game_type: GameType, config: ProtocolConfig) -> GameRules:
    """Look up the rule set for a game type."""
    match game_type:
        case GameType.SNAKES_AND_LADDERS:
            return SnakesAndLaddersRules()
        case GameType.LUDO:
            return LudoRules(max_rounds=config.ludo_max_rounds)
    raise ValueError(f"No rules registered for game type {game_type!r}")
