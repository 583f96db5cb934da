"""
Availability Index

Derived, process-local view of which dates are taken, keyed by property.
Booking records stay the source of truth: the index is rebuilt from them
and must never hold a booking the store does not have.

Each property gets a PropertyCalendar: bookings ordered by start date with
a running maximum of end dates. Conflict lookup is two binary searches
plus a scan of the candidates between them, O(log n + k) when the
calendar holds no overlaps (which the coordinator guarantees).
"""

from bisect import bisect_left, bisect_right
from dataclasses import replace
from datetime import date
from typing import Iterable, Iterator, List
from uuid import UUID
import logging
import threading

from shared.domain.value_objects import DateRange
from apps.bookings.domain.entities import Booking

logger = logging.getLogger(__name__)


def _detached(booking: Booking) -> Booking:
    """Private copy, so nothing outside the index can change its entries"""
    return replace(booking)


class PropertyCalendar:
    """Active bookings of one property ordered by start date."""

    def __init__(self, property_id: UUID):
        self.property_id = property_id
        self._keys: List[tuple[date, UUID]] = []
        self._bookings: List[Booking] = []
        # _reach[i] = max(end_date of bookings[0..i])
        self._reach: List[date] = []

    def add(self, booking: Booking):
        key = (booking.dates.start_date, booking.id)
        position = bisect_left(self._keys, key)
        self._keys.insert(position, key)
        self._bookings.insert(position, booking)
        self._reach.insert(position, booking.dates.end_date)
        self._recompute_reach(position)

    def discard(self, booking_id: UUID) -> Booking | None:
        for position, booking in enumerate(self._bookings):
            if booking.id == booking_id:
                del self._keys[position]
                del self._bookings[position]
                del self._reach[position]
                self._recompute_reach(position)
                return booking
        return None

    def get(self, booking_id: UUID) -> Booking | None:
        return next((b for b in self._bookings if b.id == booking_id), None)

    def overlapping(self, dates: DateRange) -> List[Booking]:
        """Bookings whose range overlaps `dates`, ordered by start date"""
        # Candidates start before the requested range ends ...
        upper = bisect_left(self._keys, (dates.end_date,))
        # ... and come at or after the first booking reaching past its start
        lower = bisect_right(self._reach, dates.start_date, 0, upper)
        return [
            booking for booking in self._bookings[lower:upper]
            if booking.dates.end_date > dates.start_date and booking.blocks_dates()
        ]

    def _recompute_reach(self, position: int):
        for i in range(position, len(self._bookings)):
            end = self._bookings[i].dates.end_date
            self._reach[i] = end if i == 0 else max(self._reach[i - 1], end)

    def __iter__(self) -> Iterator[Booking]:
        return iter(list(self._bookings))

    def __len__(self) -> int:
        return len(self._bookings)

    def __repr__(self):
        return f"PropertyCalendar(property={self.property_id}, bookings={len(self)})"


class AvailabilityIndex:
    """
    Per-property cache of PENDING and CONFIRMED bookings

    Not a singleton: create one and hand it to the ReservationCoordinator,
    so tests and tenants get isolated instances.

    Entries are private copies. Bookings passed in and handed out are never
    the stored objects, so a caller mutating an aggregate cannot free dates
    the store still holds.

    Usage:
        index = AvailabilityIndex()
        index.rebuild(property_id, booking_repo.load_bookings_for_property(property_id))
        if not index.conflicts(property_id, dates):
            ...
    """

    def __init__(self):
        self._calendars: dict[UUID, PropertyCalendar] = {}
        self._owners: dict[UUID, UUID] = {}
        self._lock = threading.RLock()

    def is_loaded(self, property_id: UUID) -> bool:
        with self._lock:
            return property_id in self._calendars

    def rebuild(self, property_id: UUID, bookings: Iterable[Booking]):
        """Replace the property's calendar from authoritative booking records"""
        calendar = PropertyCalendar(property_id)
        for booking in bookings:
            if booking.property_id != property_id:
                raise ValueError(
                    f"Booking {booking.id} belongs to property {booking.property_id}, "
                    f"not {property_id}"
                )
            if booking.blocks_dates():
                calendar.add(_detached(booking))

        with self._lock:
            self._drop_calendar(property_id)
            self._calendars[property_id] = calendar
            for booking in calendar:
                self._owners[booking.id] = property_id

        logger.debug(f"Rebuilt availability for property {property_id}: {len(calendar)} booking(s)")

    def invalidate(self, property_id: UUID | None = None):
        """Forget one property, or everything when no property is given"""
        with self._lock:
            if property_id is None:
                self._calendars.clear()
                self._owners.clear()
            else:
                self._drop_calendar(property_id)

    def conflicts(self, property_id: UUID, dates: DateRange) -> List[Booking]:
        """All non-canceled bookings of the property overlapping `dates`"""
        with self._lock:
            calendar = self._calendars.get(property_id)
            if calendar is None:
                return []
            return [_detached(b) for b in calendar.overlapping(dates)]

    def is_available(self, property_id: UUID, dates: DateRange) -> bool:
        return not self.conflicts(property_id, dates)

    def insert(self, booking: Booking):
        """
        Add or replace the entry for a booking

        A booking that no longer blocks dates is removed instead. Properties
        that were never loaded are left alone: a partial calendar would
        pass for a complete one, and the next rebuild picks the booking up.
        """
        with self._lock:
            self._remove(booking.id)
            if not booking.blocks_dates():
                return
            calendar = self._calendars.get(booking.property_id)
            if calendar is None:
                return
            calendar.add(_detached(booking))
            self._owners[booking.id] = booking.property_id

    def remove(self, booking_id: UUID) -> bool:
        """Drop a booking from the index. Unknown ids are ignored."""
        with self._lock:
            return self._remove(booking_id)

    def owner_of(self, booking_id: UUID) -> UUID | None:
        with self._lock:
            return self._owners.get(booking_id)

    def bookings_for(self, property_id: UUID) -> List[Booking]:
        with self._lock:
            calendar = self._calendars.get(property_id)
            return [_detached(b) for b in calendar] if calendar is not None else []

    def _remove(self, booking_id: UUID) -> bool:
        property_id = self._owners.pop(booking_id, None)
        if property_id is None:
            return False
        calendar = self._calendars.get(property_id)
        return calendar is not None and calendar.discard(booking_id) is not None

    def _drop_calendar(self, property_id: UUID):
        calendar = self._calendars.pop(property_id, None)
        if calendar is None:
            return
        for booking in calendar:
            self._owners.pop(booking.id, None)

    def __repr__(self):
        with self._lock:
            return f"AvailabilityIndex(properties={len(self._calendars)}, bookings={len(self._owners)})"
