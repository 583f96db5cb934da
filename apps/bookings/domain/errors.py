"""Booking domain errors."""

from typing import Iterable
from uuid import UUID

from shared.domain.errors import DomainError, ErrorCode


class ConflictError(DomainError):
    """Raised when an active booking already occupies part of the requested range."""

    code = ErrorCode.BOOKING_CONFLICT

    def __init__(self, property_id: UUID, conflicting_booking_ids: Iterable[UUID]) -> None:
        self.property_id = property_id
        self.conflicting_booking_ids = tuple(conflicting_booking_ids)
        super().__init__(
            f"Property {property_id} is not available for the requested dates "
            f"({len(self.conflicting_booking_ids)} overlapping booking(s))"
        )


class InvalidTransition(DomainError):
    """Raised when a booking status change breaks the lifecycle rules."""

    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, booking_id: UUID, message: str) -> None:
        self.booking_id = booking_id
        super().__init__(message)


class BookingClosed(InvalidTransition):
    """Raised when something tries to mutate a booking in a terminal state."""

    code = ErrorCode.BOOKING_CLOSED

    def __init__(self, booking_id: UUID, status: str) -> None:
        super().__init__(booking_id, f"Booking {booking_id} is {status} and can no longer change")
        self.status = status


class BookingNotFound(DomainError):
    code = ErrorCode.BOOKING_NOT_FOUND

    def __init__(self, booking_id: UUID) -> None:
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")


class PropertyNotFound(DomainError):
    code = ErrorCode.PROPERTY_NOT_FOUND

    def __init__(self, property_id: UUID) -> None:
        self.property_id = property_id
        super().__init__(f"Property {property_id} not found")


class LockTimeout(DomainError):
    """
    Raised when a lock is not acquired in time: the per-property critical
    section, or a database row lock held by another process.
    """

    code = ErrorCode.LOCK_TIMEOUT

    def __init__(self, resource_id: UUID, timeout: float) -> None:
        self.resource_id = resource_id
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for the lock on {resource_id}")
