"""
Domain Errors

Error codes and the base exception shared by every bounded context.
Handlers map codes to transport-level responses; messages stay user-safe.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_INTERVAL = "INVALID_INTERVAL"
    INVALID_PRICE = "INVALID_PRICE"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    BOOKING_CONFLICT = "BOOKING_CONFLICT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    BOOKING_CLOSED = "BOOKING_CLOSED"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    PROPERTY_NOT_FOUND = "PROPERTY_NOT_FOUND"
    LOCK_TIMEOUT = "LOCK_TIMEOUT"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.PERSISTENCE_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidInterval(DomainError, ValueError):
    """Raised when a date range is malformed (end <= start) or violates policy."""

    code = ErrorCode.INVALID_INTERVAL


class InvalidPrice(DomainError, ValueError):
    """Raised when a price cannot be used for a booking."""

    code = ErrorCode.INVALID_PRICE


class PersistenceError(DomainError):
    """
    Raised when a persistence collaborator fails.

    Never retried inside the engine: retry policy belongs to the caller.
    """

    code = ErrorCode.PERSISTENCE_ERROR
