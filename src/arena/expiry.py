"""
Expiry / liveness checks.

Pure functions of the current time and a session's state. There is no background timer:
any party (a participant or a third party watcher) asks for expiry once a deadline has passed.

The field-level functions (`deadline_for`, `strikes_exhausted_in`, `may_expire`) take plain values,
so a snapshot outside the domain layer (e.g. the read model) is judged by the same rules as a GameSession.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Iterator, Mapping, Optional

from src.core.config import ProtocolConfig
from src.core.shared_types import SessionState

if TYPE_CHECKING:
    from src.arena.session import GameSession


def deadline_for(
    state: SessionState, created_at: datetime, last_action_time: datetime, config: ProtocolConfig
) -> Optional[datetime]:
    """Moment after which a session in `state` may be expired. None for terminal states."""
    match state:
        case SessionState.WAITING:
            return created_at + config.join_timeout
        case SessionState.IN_PROGRESS:
            return last_action_time + config.move_timeout
    return None


def strikes_exhausted_in(invalid_reveals: Mapping[str, int], config: ProtocolConfig) -> bool:
    return any(count >= config.max_invalid_reveals for count in invalid_reveals.values())


def may_expire(
    state: SessionState,
    deadline: Optional[datetime],
    now: datetime,
    reveal_count: int,
    strikes_out: bool,
) -> bool:
    if deadline is None:
        return False
    if state == SessionState.IN_PROGRESS:
        # both reveals in a round are evaluated immediately, so a full pair never lingers here
        if reveal_count == 2:
            return False
        if strikes_out:
            return True
    return now > deadline


def expiry_deadline(session: "GameSession", config: ProtocolConfig) -> Optional[datetime]:
    return deadline_for(session.state, session.created_at, session.last_action_time, config)


def strikes_exhausted(session: "GameSession", config: ProtocolConfig) -> bool:
    """A participant used up their allowance of failed reveals."""
    return strikes_exhausted_in(
        {player: session.invalid_reveals.get(player, 0) for player in session.participants}, config
    )


def is_expirable(session: "GameSession", now: datetime, config: ProtocolConfig) -> bool:
    return may_expire(
        session.state,
        expiry_deadline(session, config),
        now,
        len(session.reveals),
        strikes_exhausted(session, config),
    )


def find_expirable(
    sessions: Iterable[tuple[int, "GameSession"]], now: datetime, config: ProtocolConfig
) -> Iterator[int]:
    """Watcher sweep: ids of the given sessions that may be expired right now."""
    for game_id, session in sessions:
        if is_expirable(session, now, config):
            yield game_id
