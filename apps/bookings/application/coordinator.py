"""
Reservation Coordinator

This implements the critical business logic for creating bookings
with double booking prevention.

Strategy (Defense in Depth):
1. Validate the requested range and the reservation policy
2. Enter the per-property lock (never a global one)
3. Start a unit of work and load the property with a row lock
4. Check the availability index for overlapping PENDING/CONFIRMED bookings
5. Price the stay and create the PENDING booking
6. Save within the transaction, commit, publish events
7. Only after the commit, insert the booking into the index
8. Database unique constraint on (property, start, end) as final safety net
"""

from datetime import date, datetime
from typing import Callable
from uuid import UUID
import logging

from shared.domain.base import utcnow
from shared.domain.value_objects import DateRange, Money
from apps.bookings.application.locks import PropertyLockRegistry
from apps.bookings.application.state_machine import BookingStateMachine
from apps.bookings.domain.availability import AvailabilityIndex, PropertyCalendar
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.errors import BookingNotFound, ConflictError, PropertyNotFound
from apps.bookings.domain.policy import ReservationPolicy
from apps.bookings.domain.pricing import PricingCalculator
from apps.bookings.domain.repositories import BookingUnitOfWork

logger = logging.getLogger(__name__)


class ReservationCoordinator:
    """
    Orchestrates "attempt to book"

    Safe under concurrent invocation. Everything it needs is passed in:

        coordinator = ReservationCoordinator(
            uow_factory=lambda: InMemoryUnitOfWork(storage),
            index=AvailabilityIndex(),
        )
        booking = coordinator.reserve(property_id, user_id, date(2025, 7, 1), date(2025, 7, 5))

    With refresh_index=True the property's calendar is reloaded from the
    store inside every critical section, which keeps several processes
    sharing one database correct at the cost of a query per reservation.
    """

    def __init__(
        self,
        uow_factory: Callable[[], BookingUnitOfWork],
        index: AvailabilityIndex,
        *,
        locks: PropertyLockRegistry | None = None,
        pricing: PricingCalculator | None = None,
        policy: ReservationPolicy | None = None,
        clock: Callable[[], datetime] = utcnow,
        refresh_index: bool = False,
    ):
        self._uow_factory = uow_factory
        self._index = index
        self._locks = locks or PropertyLockRegistry()
        self._pricing = pricing or PricingCalculator()
        self._policy = policy or ReservationPolicy()
        self._clock = clock
        self._refresh_index = refresh_index
        self.state_machine = BookingStateMachine(
            uow_factory, index, locks=self._locks, clock=clock
        )

    @property
    def index(self) -> AvailabilityIndex:
        return self._index

    def reserve(
        self,
        property_id: UUID,
        user_id: UUID,
        start_date: date,
        end_date: date,
        *,
        price_override: Money | None = None,
    ) -> Booking:
        """
        Reserve dates for a user

        Returns: the new PENDING booking

        Raises:
            InvalidInterval: Malformed range or policy violation
            PropertyNotFound: Unknown property
            ConflictError: An active booking overlaps the range
            InvalidPrice: Unusable price override
            LockTimeout: Property lock not acquired in time
            PersistenceError: Store failure (nothing changed)
        """
        dates = DateRange(start_date, end_date)
        self._policy.validate(dates, today=self._clock().date())

        logger.info(f"Reserving property {property_id} for user {user_id}, dates {dates}")

        with self._locks.hold(property_id):
            with self._uow_factory() as uow:
                prop = uow.properties.load_property(property_id, lock=True)
                if prop is None:
                    raise PropertyNotFound(property_id)

                self._ensure_index(uow, property_id)

                conflicting = self._index.conflicts(property_id, dates)
                if conflicting:
                    logger.info(
                        f"Conflict for property {property_id} {dates}: "
                        f"{', '.join(str(b.id) for b in conflicting)}"
                    )
                    raise ConflictError(property_id, [b.id for b in conflicting])

                quote = self._pricing.quote(prop, dates, override=price_override)
                booking = Booking.create(
                    property_id=property_id,
                    user_id=user_id,
                    dates=dates,
                    quote=quote,
                    at=self._clock(),
                )

                uow.bookings.save_booking(booking)
                uow.collect_events(booking)

            self._index.insert(booking)

        logger.info(f"Booking {booking.id} created, total {booking.total_price}")
        return booking

    def confirm(
        self,
        booking_id: UUID,
        *,
        dates: DateRange | None = None,
        payment_reference: str | None = None,
    ) -> Booking:
        return self.state_machine.confirm(
            booking_id, dates=dates, payment_reference=payment_reference
        )

    def cancel(self, booking_id: UUID, reason: str = '') -> Booking:
        """Cancel a booking; its dates become available again. Idempotent."""
        return self.state_machine.cancel(booking_id, reason)

    def get_booking(self, booking_id: UUID) -> Booking:
        with self._uow_factory() as uow:
            booking = uow.bookings.get_booking(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking

    def conflicts(self, property_id: UUID, start_date: date, end_date: date) -> list[Booking]:
        """
        Active bookings overlapping the range

        Read-only and never enters the property lock, so availability
        traffic cannot starve reservations. When the shared index is not
        authoritative for the property, the answer comes from a private
        calendar built from the store; the shared index is left for
        writers to load under the lock.
        """
        dates = DateRange(start_date, end_date)
        if not self._refresh_index and self._index.is_loaded(property_id):
            return self._index.conflicts(property_id, dates)

        with self._uow_factory() as uow:
            if uow.properties.load_property(property_id) is None:
                raise PropertyNotFound(property_id)
            bookings = uow.bookings.load_bookings_for_property(property_id)

        calendar = PropertyCalendar(property_id)
        for booking in bookings:
            if booking.blocks_dates():
                calendar.add(booking)
        return calendar.overlapping(dates)

    def is_available(self, property_id: UUID, start_date: date, end_date: date) -> bool:
        return not self.conflicts(property_id, start_date, end_date)

    def expire_stale(self, older_than: datetime) -> list[UUID]:
        """
        Cancel PENDING bookings created before `older_than`

        Each booking is canceled on its own; one failure does not stop
        the rest and is logged with its booking id.

        Returns: ids of bookings that were canceled
        """
        with self._uow_factory() as uow:
            stale = uow.bookings.list_pending_created_before(older_than)

        expired: list[UUID] = []
        for booking in stale:
            try:
                if self.state_machine.expire(booking.id):
                    expired.append(booking.id)
            except Exception as e:
                logger.error(f"Error expiring booking {booking.id}: {e}", exc_info=True)

        if expired:
            logger.info(f"Expired {len(expired)} pending bookings")
        return expired

    def _ensure_index(self, uow: BookingUnitOfWork, property_id: UUID):
        if self._refresh_index or not self._index.is_loaded(property_id):
            self._index.rebuild(property_id, uow.bookings.load_bookings_for_property(property_id))
