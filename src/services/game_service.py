"""Orchestration of requests to the session state machine, persistence, fund custody and event layers."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterator, Optional

from src.api.models import (
    CommitMoveRequest,
    CreateGameRequest,
    ExpireGameRequest,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    PayoutResponse,
    RevealMoveRequest,
)
from src.api.read_model import SessionView, project_session
from src.arena.expiry import find_expirable
from src.arena.session import GameSession
from src.arena.settlement import Payout
from src.core.config import ProtocolConfig
from src.core.exceptions import InvalidRevealError, RepositoryError, SessionNotFoundError
from src.core.models import SessionModel
from src.core.shared_types import Identity, SessionState
from src.db.repository import GameRepository
from src.services.clock import Clock, SystemClock
from src.services.custody import FundCustody
from src.services.events import (
    EventBus,
    GameCreated,
    GameExpired,
    GameFinished,
    MoveCommitted,
    MoveRevealed,
    PlayerJoined,
    RoundPlayed,
)

logger = logging.getLogger(__name__)


class ActiveGames:
    """Lazy, restartable view of the active session IDs. Every iteration queries the repository again."""

    def __init__(self, repository: GameRepository) -> None:
        self._repo = repository

    def __iter__(self) -> Iterator[int]:
        return self._repo.iter_active_ids()


class GameService:
    """Orchestration of layers for staked two-player game sessions."""

    def __init__(
        self,
        repository: GameRepository,
        custody: FundCustody,
        config: Optional[ProtocolConfig] = None,
        clock: Optional[Clock] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.repo = repository
        self.custody = custody
        self.config = config or ProtocolConfig()
        self.clock = clock or SystemClock()
        self.events = events or EventBus()

    # -- Ledger operations ---
    # Custody is settled before any event is published. Subscribers only see completed fund movements.
    def create_game(self, request: CreateGameRequest) -> GameResponse:
        """
        First player opens a session and escrows the stake.
        ----
        Requests are applied one at a time, so the ID the repository allocates next is known up front.
        The stake is escrowed under it before the session is stored, and refunded if storing fails.
        """
        session = GameSession.new_session(
            game_type=request.game_type,
            creator=request.player,
            stake=request.stake,
            now=self.clock.now(),
            config=self.config,
        )
        game_id = self.repo.game_counter() + 1
        self.custody.escrow(game_id, session.player1, session.stake)
        try:
            stored, created_id = self.repo.create_session(session.to_model())
            if created_id != game_id:
                raise RepositoryError(f"Expected new game to get ID {game_id}, got {created_id}.")
        except Exception:
            self._refund(game_id, session.player1, session.stake)
            raise

        logger.info("Game %s (%s) created by %s", game_id, session.game_type, session.player1)
        self.events.publish(GameCreated(game_id, session.game_type, session.player1))
        return self._create_game_response(game_id, stored)

    def join_game(self, request: JoinGameRequest) -> GameResponse:
        """Second player joins and escrows the same stake. The session moves to in progress."""
        session = self._load(request.game_id)
        session.join(request.player, request.stake, self.clock.now(), self.config)
        self.custody.escrow(request.game_id, session.player2, session.stake)
        try:
            stored = self._save(request.game_id, session)
        except Exception:
            self._refund(request.game_id, session.player2, session.stake)
            raise

        logger.info("Player %s joined game %s", session.player2, request.game_id)
        self.events.publish(PlayerJoined(request.game_id, session.player2))
        return self._create_game_response(request.game_id, stored)

    def commit_move(self, request: CommitMoveRequest) -> GameResponse:
        session = self._load(request.game_id)
        session.commit_move(request.player, request.commitment, self.clock.now())
        stored = self._save(request.game_id, session)

        logger.info(
            "Player %s committed in game %s, round %s", request.player, request.game_id, session.round
        )
        self.events.publish(MoveCommitted(request.game_id, request.player, session.round))
        return self._create_game_response(request.game_id, stored)

    def reveal_move(self, request: RevealMoveRequest) -> GameResponse:
        """
        Open a commitment.
        ----
        A failed reveal changes nothing but the player's strike count, which is persisted before the error propagates.
        When both players revealed the round is played, and a finished game is paid out.
        """
        session = self._load(request.game_id)
        round_played = session.round
        try:
            result = session.reveal_move(
                request.player, request.move, request.nonce, self.clock.now(), self.config
            )
        except InvalidRevealError:
            logger.warning(
                "Invalid reveal by %s in game %s (strikes: %s)",
                request.player,
                request.game_id,
                session.invalid_reveals.get(request.player, 0),
            )
            self._save(request.game_id, session)
            raise

        stored = self._save(request.game_id, session)
        if session.state == SessionState.FINISHED:
            self._pay_out(request.game_id, session.payouts)
            logger.info("Game %s finished, winner: %s", request.game_id, session.winner or "draw")

        self.events.publish(MoveRevealed(request.game_id, request.player, round_played))
        if result is not None:
            logger.info("Game %s played round %s", request.game_id, round_played)
            self.events.publish(RoundPlayed(request.game_id, round_played, dict(result.game_data)))
        if session.state == SessionState.FINISHED:
            self.events.publish(GameFinished(request.game_id, session.winner))
        return self._create_game_response(request.game_id, stored)

    def expire_game(self, request: ExpireGameRequest) -> GameResponse:
        """Anyone may expire a stalled session once its deadline passed. Stakes are refunded or forfeited."""
        session = self._load(request.game_id)
        payouts = session.expire(self.clock.now(), self.config)
        stored = self._save(request.game_id, session)
        self._pay_out(request.game_id, payouts)

        logger.info(
            "Game %s expired from %s (requested by %s), forfeit to: %s",
            request.game_id,
            session.expired_from,
            request.caller or "anonymous",
            session.winner or "nobody",
        )
        self.events.publish(GameExpired(request.game_id, session.winner))
        return self._create_game_response(request.game_id, stored)

    def get_game(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current session state.
        ----
        Read only and idempotent. Used in a "polling" loop by front ends after every action.
        """
        return self.games(request.game_id)

    def games(self, game_id: int) -> GameResponse:
        return self._create_game_response(game_id, self._fetch_session(game_id))

    def get_active_games(self) -> ActiveGames:
        return ActiveGames(self.repo)

    def game_counter(self) -> int:
        return self.repo.game_counter()

    # -- Watcher / read model ---
    def expire_stalled(self, now: Optional[datetime] = None) -> list[int]:
        """Expire every active session whose deadline has passed. Returns the expired IDs."""
        now = now or self.clock.now()
        candidates = [
            (game_id, self._load(game_id)) for game_id in list(self.repo.iter_active_ids())
        ]
        expirable = list(find_expirable(candidates, now, self.config))
        for game_id in expirable:
            self.expire_game(ExpireGameRequest(game_id=game_id, caller="watcher"))
        return expirable

    def view_game(self, game_id: int, viewer: str) -> SessionView:
        return project_session(self.games(game_id), viewer, self.clock.now(), self.config)

    # -- Internal helpers --
    def _pay_out(self, game_id: int, payouts: list[Payout]) -> None:
        for payout in payouts:
            self.custody.pay(game_id, payout.recipient, payout.amount)

    def _refund(self, game_id: int, player: Identity, amount: Decimal) -> None:
        """Hand back a stake whose session could not be stored."""
        logger.error("Refunding %s to %s, game %s could not be stored", amount, player, game_id)
        self.custody.pay(game_id, player, amount)

    def _load(self, game_id: int) -> GameSession:
        return GameSession.from_model(self._fetch_session(game_id))

    def _save(self, game_id: int, session: GameSession) -> SessionModel:
        stored = self.repo.update_session(game_id, session.to_model())
        if stored is None:
            raise RepositoryError(f"Could not update game with {game_id=}.")
        return stored

    def _create_game_response(self, game_id: int, model: SessionModel) -> GameResponse:
        """Convert info in SessionModel to a GameResponse (for game with given ID.)"""
        return GameResponse(
            game_id=game_id,
            game_type=model.game_type,
            player1=model.player1,
            player2=model.player2,
            state=model.state,
            stake=model.stake,
            winner=model.winner,
            round=model.round,
            commitments=model.commitments,
            revealed=list(model.reveals.keys()),
            invalid_reveals=model.invalid_reveals,
            game_data=model.game_data,
            created_at=model.created_at,
            last_action_time=model.last_action_time,
            payouts=[
                PayoutResponse(recipient=payout.recipient, amount=payout.amount, reason=payout.reason)
                for payout in model.payouts
            ],
        )

    def _fetch_session(self, game_id: int) -> SessionModel:
        """Attempt to find the session in the repository and raise error if it fails."""
        session_model = self.repo.get_session(game_id)
        if session_model is None:
            raise SessionNotFoundError(f"Game with {game_id=} not found.")
        return session_model
