"""
In-memory persistence

Process-local store for tests and for embedding the engine without a
database. Writes are staged in the unit of work and applied in one step
at commit, so a failed unit of work leaves the store untouched.
"""

from dataclasses import replace
from datetime import datetime
from typing import Dict
from uuid import UUID
import logging
import threading

from shared.application.message_bus import MessageBus
from apps.bookings.domain.entities import Booking, BookingStatus, Property
from apps.bookings.domain.repositories import (
    BookingRepository,
    BookingUnitOfWork,
    PropertyRepository,
)

logger = logging.getLogger(__name__)


def _detached(booking: Booking) -> Booking:
    """Copy without pending events, so callers never share instances with the store"""
    return replace(booking)


class InMemoryStorage:
    """Committed state shared by every unit of work created over it."""

    def __init__(self):
        self.properties: Dict[UUID, Property] = {}
        self.bookings: Dict[UUID, Booking] = {}
        self.lock = threading.RLock()

    def add_property(self, prop: Property) -> Property:
        with self.lock:
            self.properties[prop.id] = prop
        return prop

    def apply(self, bookings: Dict[UUID, Booking]):
        with self.lock:
            self.bookings.update(bookings)


class InMemoryBookingRepository(BookingRepository):

    def __init__(self, storage: InMemoryStorage, staged: Dict[UUID, Booking]):
        self._storage = storage
        self._staged = staged

    def _current(self) -> Dict[UUID, Booking]:
        with self._storage.lock:
            merged = dict(self._storage.bookings)
        merged.update(self._staged)
        return merged

    def load_bookings_for_property(self, property_id: UUID) -> list[Booking]:
        return [
            _detached(b) for b in self._current().values()
            if b.property_id == property_id
        ]

    def get_booking(self, booking_id: UUID, lock: bool = False) -> Booking | None:
        booking = self._current().get(booking_id)
        return _detached(booking) if booking is not None else None

    def save_booking(self, booking: Booking) -> None:
        self._staged[booking.id] = _detached(booking)

    def list_pending_created_before(self, cutoff: datetime) -> list[Booking]:
        pending = [
            b for b in self._current().values()
            if b.status is BookingStatus.PENDING and b.created_at < cutoff
        ]
        return [_detached(b) for b in sorted(pending, key=lambda b: b.created_at)]


class InMemoryPropertyRepository(PropertyRepository):

    def __init__(self, storage: InMemoryStorage):
        self._storage = storage

    def load_property(self, property_id: UUID, lock: bool = False) -> Property | None:
        # Serialization comes from the coordinator's property lock
        with self._storage.lock:
            return self._storage.properties.get(property_id)


class InMemoryUnitOfWork(BookingUnitOfWork):
    """
    Unit of work over InMemoryStorage

    Usage:
        storage = InMemoryStorage()
        with InMemoryUnitOfWork(storage) as uow:
            uow.bookings.save_booking(booking)
            uow.collect_events(booking)
        # staged bookings become visible here, then events are published
    """

    def __init__(self, storage: InMemoryStorage, bus: MessageBus | None = None):
        super().__init__(bus)
        self._storage = storage
        self._staged: Dict[UUID, Booking] = {}
        self.bookings = InMemoryBookingRepository(storage, self._staged)
        self.properties = InMemoryPropertyRepository(storage)
        self.committed = False

    def commit(self):
        self._storage.apply(self._staged)
        self._staged.clear()
        self.committed = True
        self._publish_events(self._drain_events())

    def rollback(self):
        if self._staged:
            logger.warning(f"Rolling back {len(self._staged)} staged booking write(s)")
        self._staged.clear()
        self._discard_events()
