"""
Read model for front ends.

A pure projection from a session snapshot (GameResponse) to what a game lobby displays for a given viewer.
No I/O: front ends poll `get_game` and re-project, nothing is pushed to them.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from src.api.models import GameResponse
from src.arena.expiry import deadline_for, may_expire, strikes_exhausted_in
from src.core.config import ProtocolConfig
from src.core.shared_types import NO_PLAYER, GameType, SessionState, normalize_identity

GAME_LABELS = {
    GameType.SNAKES_AND_LADDERS: "Snakes & Ladders",
    GameType.LUDO: "Ludo",
}

STATUS_LABELS = {
    SessionState.WAITING: "Waiting",
    SessionState.IN_PROGRESS: "In Progress",
    SessionState.FINISHED: "Finished",
    SessionState.EXPIRED: "Expired",
}


class SessionView(BaseModel):
    game_id: int
    title: str
    game_label: str
    status_label: str
    player1: str
    player2: Optional[str]
    winner: Optional[str]
    is_draw: bool
    viewer_role: str
    round: int
    stake: Decimal
    winner_reward: Decimal
    protocol_fee: Decimal
    expires_at: Optional[datetime]
    can_join: bool
    can_commit: bool
    can_reveal: bool
    can_expire: bool


def shorten(identity: str) -> str:
    """0x742d35Cc7bC6dA10c2a8B6A2A1FBF5Cb -> 0x742d...F5Cb"""
    if len(identity) <= 12:
        return identity
    return f"{identity[:6]}...{identity[-4:]}"


def project_session(
    game: GameResponse, viewer: str, now: datetime, config: ProtocolConfig
) -> SessionView:
    viewer = normalize_identity(viewer)
    state = SessionState(game.state)
    participants = [player for player in (game.player1, game.player2) if player != NO_PLAYER]
    is_participant = viewer in participants
    in_progress = state == SessionState.IN_PROGRESS

    if viewer == game.player1:
        viewer_role = "player1"
    elif viewer == game.player2 and game.player2 != NO_PLAYER:
        viewer_role = "player2"
    else:
        viewer_role = "spectator"

    expires_at = deadline_for(state, game.created_at, game.last_action_time, config)
    can_expire = may_expire(
        state,
        expires_at,
        now,
        len(game.revealed),
        strikes_exhausted_in(game.invalid_reveals, config),
    )

    return SessionView(
        game_id=game.game_id,
        title=f"Game #{game.game_id} - {GAME_LABELS[game.game_type]}",
        game_label=GAME_LABELS[game.game_type],
        status_label=STATUS_LABELS[state],
        player1=shorten(game.player1),
        player2=shorten(game.player2) if game.player2 != NO_PLAYER else None,
        winner=shorten(game.winner) if game.winner != NO_PLAYER else None,
        is_draw=state == SessionState.FINISHED and game.winner == NO_PLAYER,
        viewer_role=viewer_role,
        round=game.round,
        stake=game.stake,
        winner_reward=2 * game.stake - config.protocol_fee,
        protocol_fee=config.protocol_fee,
        expires_at=expires_at,
        can_join=state == SessionState.WAITING and viewer not in (game.player1, NO_PLAYER),
        can_commit=in_progress and is_participant and viewer not in game.commitments,
        can_reveal=(
            in_progress
            and is_participant
            and viewer in game.commitments
            and len(game.commitments) == 2
            and viewer not in game.revealed
        ),
        can_expire=can_expire,
    )
