"""Error taxonomy for game actions.

Errors are raised where a problem is detected and turned into an ``error``
event for the sending connection by the game handler.
"""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Machine-readable error codes sent next to the message."""

    VALIDATION = "validation"
    NOT_FOUND = "notFound"
    CONFLICT = "conflict"
    CAPACITY = "capacity"
    INVALID_STATE = "invalidState"
    STORAGE = "storage"
    TRANSPORT = "transport"
    UNKNOWN_TYPE = "unknownType"
    INTERNAL = "internal"


class GameError(Exception):
    """Base class for every player-facing game error."""

    code: ErrorCode = ErrorCode.INTERNAL
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GameError):
    """Malformed or semantically invalid request."""

    code = ErrorCode.VALIDATION


class NotFoundError(GameError):
    """Unknown game code or unknown player."""

    code = ErrorCode.NOT_FOUND


class ConflictError(GameError):
    """Display name already taken in the session."""

    code = ErrorCode.CONFLICT


class CapacityError(GameError):
    """Player limit reached."""

    code = ErrorCode.CAPACITY


class InvalidStateError(GameError):
    """Action not allowed in the current lifecycle state."""

    code = ErrorCode.INVALID_STATE


class StorageError(GameError):
    """Store operation failed or timed out."""

    code = ErrorCode.STORAGE
    retryable = True


class TransportError(GameError):
    """Sending to a connection failed."""

    code = ErrorCode.TRANSPORT
