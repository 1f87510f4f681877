"""Domain errors raised by the order engine and its collaborators."""

from __future__ import annotations


class OrderEngineError(Exception):
    """Base class for failures returned to API callers."""

    code: str = "order_engine_error"
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidTransitionError(OrderEngineError):
    """Requested event is not allowed from the current state."""

    code = "invalid_transition"


class ConflictError(OrderEngineError):
    """Concurrent write lost the race, or a client-supplied id collided."""

    code = "conflict"

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class NotFoundError(OrderEngineError):
    code = "not_found"


class UnauthorizedError(OrderEngineError):
    """Actor role or identity does not satisfy the guard."""

    code = "unauthorized"
