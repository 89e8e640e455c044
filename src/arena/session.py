"""
The GameSession class is the entrypoint into the domain layer for the service layer.
It enforces the session state machine:

    Waiting --join--> InProgress --both reveals, game over--> Finished
       |                  |  ^
       |                  |  '--both reveals, game continues (next round)
       '--expire--> Expired <--expire--'

and triggers settlement the moment a terminal state is reached.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Self

from src.arena import commitment, expiry, settlement
from src.arena.rules import RevealedMove, TurnResult, rules_for
from src.arena.settlement import Payout
from src.core.config import ProtocolConfig
from src.core.exceptions import (
    AlreadyJoinedError,
    AlreadyTerminalError,
    DuplicateCommitmentError,
    GameStateError,
    InvalidRequestError,
    InvalidRevealError,
    InvalidStakeError,
    NotParticipantError,
    NotYetExpirableError,
    RevealTooEarlyError,
)
from src.core.models import SessionModel
from src.core.shared_types import NO_PLAYER, GameType, Identity, SessionState, normalize_identity


@dataclass
class GameSession:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    game_type: GameType
    player1: Identity
    player2: Identity
    state: SessionState
    stake: Decimal
    created_at: datetime
    last_action_time: datetime
    winner: Identity = NO_PLAYER
    round: int = 1
    commitments: dict[Identity, str] = field(default_factory=dict)
    reveals: dict[Identity, RevealedMove] = field(default_factory=dict)
    game_data: dict = field(default_factory=dict)
    invalid_reveals: dict[Identity, int] = field(default_factory=dict)
    settled: bool = False
    payouts: list[Payout] = field(default_factory=list)
    expired_from: Optional[SessionState] = None

    @classmethod
    def new_session(
        cls,
        game_type: GameType,
        creator: Identity,
        stake: Decimal,
        now: datetime,
        config: ProtocolConfig,
    ) -> Self:
        """Creator opens a session and escrows the required stake."""
        creator = normalize_identity(creator)
        if creator == NO_PLAYER:
            raise InvalidRequestError("Cannot create a game without a creator identity.")
        _assert_required_stake(stake, config)
        return cls(
            game_type=GameType(game_type),
            player1=creator,
            player2=NO_PLAYER,
            state=SessionState.WAITING,
            stake=config.stake,
            created_at=now,
            last_action_time=now,
        )

    @classmethod
    def from_model(cls, model: SessionModel) -> Self:
        """Construct a GameSession from the information the Service layer actually has"""
        try:
            game_type = GameType(model.game_type)
            state = SessionState(model.state)
            expired_from = SessionState(model.expired_from) if model.expired_from else None
        except ValueError as e:
            raise GameStateError(f"Invalid session record: {e}") from e

        return cls(
            game_type=game_type,
            player1=model.player1,
            player2=model.player2,
            state=state,
            stake=Decimal(model.stake),
            created_at=model.created_at,
            last_action_time=model.last_action_time,
            winner=model.winner,
            round=model.round,
            commitments=dict(model.commitments),
            reveals={
                player: RevealedMove(move=int(data["move"]), nonce=int(data["nonce"]))
                for player, data in model.reveals.items()
            },
            game_data=dict(model.game_data),
            invalid_reveals=dict(model.invalid_reveals),
            settled=model.settled,
            payouts=[Payout.from_model(payout) for payout in model.payouts],
            expired_from=expired_from,
        )

    def to_model(self) -> SessionModel:
        """Encode back into a format the Service layer uses"""
        return SessionModel(
            game_type=str(self.game_type),
            player1=self.player1,
            player2=self.player2,
            state=str(self.state),
            stake=self.stake,
            created_at=self.created_at,
            last_action_time=self.last_action_time,
            winner=self.winner,
            round=self.round,
            commitments=dict(self.commitments),
            reveals={
                player: {"move": reveal.move, "nonce": reveal.nonce}
                for player, reveal in self.reveals.items()
            },
            game_data=dict(self.game_data),
            invalid_reveals=dict(self.invalid_reveals),
            settled=self.settled,
            payouts=[payout.to_model() for payout in self.payouts],
            expired_from=str(self.expired_from) if self.expired_from else "",
        )

    @property
    def participants(self) -> tuple[Identity, ...]:
        if self.player2 == NO_PLAYER:
            return (self.player1,)
        return (self.player1, self.player2)

    def opponent_of(self, player: Identity) -> Identity:
        self._assert_participant(player)
        return self.player2 if player == self.player1 else self.player1

    def join(
        self, player: Identity, stake: Decimal, now: datetime, config: ProtocolConfig
    ) -> None:
        """Second player joins an open session, supplying the same stake as the creator."""
        player = normalize_identity(player)
        self._assert_not_terminal()
        if self.state != SessionState.WAITING or self.player2 != NO_PLAYER:
            raise AlreadyJoinedError("Cannot join this game. It already has two players.")
        if player == NO_PLAYER:
            raise InvalidRequestError("Cannot join a game without a player identity.")
        if player == self.player1:
            raise AlreadyJoinedError("Cannot join your own game.")
        _assert_required_stake(stake, config)

        self.player2 = player
        self.game_data = rules_for(self.game_type, config).initial_data(self.player1, self.player2)
        self.last_action_time = now
        self._change_state(SessionState.IN_PROGRESS)

    def commit_move(self, player: Identity, digest: str, now: datetime) -> None:
        """Store a participant's commitment for the current round. Only one per participant per round."""
        player = normalize_identity(player)
        self._assert_not_terminal()
        self._assert_participant(player)
        self._assert_in_progress()

        normalized = commitment.normalize_digest(digest)
        if player in self.commitments:
            raise DuplicateCommitmentError(
                f"Player {player} already committed in round {self.round}."
            )
        if normalized in self.commitments.values():
            raise DuplicateCommitmentError("This commitment was already submitted by the opponent.")

        self.commitments[player] = normalized
        self.last_action_time = now

    def reveal_move(
        self, player: Identity, move: int, nonce: int, now: datetime, config: ProtocolConfig
    ) -> Optional[TurnResult]:
        """
        Open a participant's commitment.
        ----
        1. both participants must have committed (otherwise the first reveal leaks a move to a player who can still commit)
        2. the revealed (move, nonce, player) must hash to the stored commitment, else a strike is recorded and InvalidRevealError raised
        3. once both reveals are in, the round is played (returns the TurnResult); otherwise returns None
        """
        player = normalize_identity(player)
        self._assert_not_terminal()
        self._assert_participant(player)
        self._assert_in_progress()

        if player not in self.commitments:
            raise RevealTooEarlyError(f"Player {player} has nothing to reveal. Commit a move first.")
        if len(self.commitments) < 2:
            raise RevealTooEarlyError("Waiting for the opponent to commit before revealing.")
        if player in self.reveals:
            raise GameStateError(f"Player {player} already revealed in round {self.round}.")

        if not commitment.verify(self.commitments[player], move, nonce, player):
            self.invalid_reveals[player] = self.invalid_reveals.get(player, 0) + 1
            raise InvalidRevealError(
                f"Revealed move does not match the commitment of player {player} "
                f"(failed reveals: {self.invalid_reveals[player]})."
            )

        self.reveals[player] = RevealedMove(move=move, nonce=nonce)
        self.last_action_time = now

        if len(self.reveals) < 2:
            return None
        return self.play_turn(config)

    def play_turn(self, config: ProtocolConfig) -> TurnResult:
        """Apply the game rules to this round's reveals; finish and settle, or open the next round."""
        if len(self.reveals) != 2:
            raise GameStateError("A turn is played once both participants revealed.")

        rules = rules_for(self.game_type, config)
        result = rules.play_turn(self.game_data, dict(self.reveals), self.round)
        self.game_data = result.game_data

        if result.finished:
            self.winner = result.winner if result.winner is not None else NO_PLAYER
            self._change_state(SessionState.FINISHED)
            self.settle(config)
        else:
            self.round += 1
            self.commitments.clear()
            self.reveals.clear()
        return result

    def is_expirable(self, now: datetime, config: ProtocolConfig) -> bool:
        return expiry.is_expirable(self, now, config)

    def expire(self, now: datetime, config: ProtocolConfig) -> list[Payout]:
        """Force a stalled session into Expired and settle it (refund or forfeit)."""
        self._assert_not_terminal()
        if not self.is_expirable(now, config):
            deadline = expiry.expiry_deadline(self, config)
            raise NotYetExpirableError(f"Session cannot be expired before {deadline}.")

        self.expired_from = self.state
        if self.state == SessionState.IN_PROGRESS:
            self.winner = settlement.resolve_forfeit(self, config) or NO_PLAYER
        self._change_state(SessionState.EXPIRED)
        return self.settle(config)

    def settle(self, config: ProtocolConfig) -> list[Payout]:
        return settlement.settle(self, config)

    # -- PRIVATE HELPERS ---
    def _assert_not_terminal(self) -> None:
        if self.state.is_terminal:
            raise AlreadyTerminalError(f"Game is over. state: {self.state}")

    def _assert_in_progress(self) -> None:
        if self.state != SessionState.IN_PROGRESS:
            raise GameStateError(f"Game is not in progress. state: {self.state}")

    def _assert_participant(self, player: Identity) -> None:
        if player == NO_PLAYER or player not in self.participants:
            raise NotParticipantError(f"Player {player!r} is not part of this game.")

    def _change_state(self, new_state: SessionState) -> None:
        """States only ever move forward: Waiting < InProgress < {Finished, Expired}."""
        if self.state.is_terminal or new_state.rank <= self.state.rank:
            raise GameStateError(f"Illegal transition {self.state} -> {new_state}")
        self.state = new_state


def _assert_required_stake(stake: Decimal, config: ProtocolConfig) -> None:
    if Decimal(stake) != config.stake:
        raise InvalidStakeError(f"Stake must be exactly {config.stake}, got {stake}")
