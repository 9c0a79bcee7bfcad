"""
errors.py - Error taxonomy for the game core.

Every failure a caller can observe is one of four kinds:

    NotFound           missing coin, wallet or stats row
    ValidationFailure  out of range, find limit exceeded, insufficient
                       funds, wrong owner, coin already collected
    Conflict           lost a concurrent race on the same coin
    SystemFailure      store or transaction failure (opaque)

NotFound and ValidationFailure carry a human-readable reason meant to be
shown verbatim. Conflict is kept apart from ValidationFailure so a client
can refresh its nearby list instead of just showing the message. None of
these are retried inside the core.
"""

from typing import Optional


class GameError(Exception):
    """Base class for all errors raised by the game core."""

    def __init__(self, message: str = "The operation could not be completed."):
        self.message = message
        super().__init__(message)


class NotFound(GameError):
    """The requested coin, wallet or stats record does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ValidationFailure(GameError):
    """A business rule rejected the request.

    ``distance`` is set when the failure came from a collection check that
    measured the player's distance to the coin.
    """

    def __init__(self, message: str = "Validation error", distance: Optional[float] = None):
        super().__init__(message)
        self.distance = distance


class Conflict(GameError):
    """Another request changed the coin first; re-read state before acting."""

    def __init__(self, message: str = "The coin was changed by another request"):
        super().__init__(message)


class SystemFailure(GameError):
    """The store aborted the unit of work. Nothing was applied."""

    def __init__(self, message: str = "Internal store failure"):
        super().__init__(message)
