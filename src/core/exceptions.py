"""
Custom exceptions used across layers.

Two families are kept apart so callers (and anti-cheat telemetry) can tell them apart:
- InputValidationError: bad input (unknown session, wrong stake, wrong caller). Retry with corrected input.
- ProtocolViolationError: the request breaks the commit-reveal protocol (duplicate commitment, bad reveal, acting on a terminal session).
"""


class GameError(Exception):
    """Top level exception for anything the game protocol rejects."""


# --- VALIDATION ERRORS ---
class InputValidationError(GameError):
    """Rejected input. No state was changed."""


class SessionNotFoundError(InputValidationError):
    pass


class InvalidStakeError(InputValidationError):
    pass


class AlreadyJoinedError(InputValidationError):
    pass


class NotParticipantError(InputValidationError):
    pass


class InvalidCommitmentError(InputValidationError):
    """Commitment digest is not a well formed 32-byte hex string."""


class InvalidRequestError(InputValidationError):
    """Raised by request model validators."""


# --- PROTOCOL VIOLATIONS ---
class ProtocolViolationError(GameError):
    """Rejected because the request breaks the protocol. No state was changed."""


class GameStateError(ProtocolViolationError):
    """Operation not allowed in the session's current (non-terminal) state."""


class DuplicateCommitmentError(ProtocolViolationError):
    pass


class InvalidRevealError(ProtocolViolationError):
    pass


class RevealTooEarlyError(ProtocolViolationError):
    """Both participants must have committed before anyone reveals."""


class NotYetExpirableError(ProtocolViolationError):
    pass


class AlreadyTerminalError(ProtocolViolationError):
    pass


# --- INFRASTRUCTURE ---
class RepositoryError(GameError):
    pass


class CustodyError(GameError):
    pass
