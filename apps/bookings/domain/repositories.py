"""
Repository interfaces.

Repositories must be swappable and return domain models. The booking
engine only talks to these; the in-memory and Django ORM implementations
live in apps.bookings.infrastructure.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from shared.application.uow import AbstractUnitOfWork
from apps.bookings.domain.entities import Booking, Property


class BookingRepository(ABC):
    """Interface for booking persistence operations."""

    @abstractmethod
    def load_bookings_for_property(self, property_id: UUID) -> list[Booking]:
        """Return every booking of a property, canceled ones included."""
        ...

    @abstractmethod
    def get_booking(self, booking_id: UUID, lock: bool = False) -> Booking | None:
        """Return a booking by ID, or None if not found."""
        ...

    @abstractmethod
    def save_booking(self, booking: Booking) -> None:
        """Insert or update a booking."""
        ...

    @abstractmethod
    def list_pending_created_before(self, cutoff: datetime) -> list[Booking]:
        """Return PENDING bookings created before `cutoff`, oldest first."""
        ...


class PropertyRepository(ABC):
    """Interface for reading property reference data."""

    @abstractmethod
    def load_property(self, property_id: UUID, lock: bool = False) -> Property | None:
        """
        Return a property by ID, or None if not found.

        With lock=True the implementation serializes concurrent writers of
        the same property until the surrounding unit of work ends.
        """
        ...


class BookingUnitOfWork(AbstractUnitOfWork):
    """Unit of work exposing the booking engine's repositories."""

    bookings: BookingRepository
    properties: PropertyRepository
