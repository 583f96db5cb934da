"""
Booking State Machine service

Entry point for lifecycle changes coming from outside the reservation
flow: the payment collaborator confirms after capturing funds and cancels
on refund; users and the hold-expiry task cancel.

Every change runs under the property lock inside a unit of work. The
availability index is updated only after the commit succeeded.
"""

from datetime import datetime
from typing import Callable
from uuid import UUID
import logging

from shared.domain.base import utcnow
from shared.domain.value_objects import DateRange
from apps.bookings.application.locks import PropertyLockRegistry
from apps.bookings.domain.availability import AvailabilityIndex
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.errors import BookingNotFound
from apps.bookings.domain.repositories import BookingUnitOfWork

logger = logging.getLogger(__name__)


class BookingStateMachine:
    """Applies confirm/cancel transitions to stored bookings."""

    def __init__(
        self,
        uow_factory: Callable[[], BookingUnitOfWork],
        index: AvailabilityIndex,
        *,
        locks: PropertyLockRegistry,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._uow_factory = uow_factory
        self._index = index
        self._locks = locks
        self._clock = clock

    def confirm(
        self,
        booking_id: UUID,
        *,
        dates: DateRange | None = None,
        payment_reference: str | None = None,
    ) -> Booking:
        """
        Confirm a pending booking after payment capture

        Raises:
            BookingNotFound: Unknown booking id
            BookingClosed: Booking already canceled
            InvalidTransition: Booking not pending, or `dates` differ from
                the booked range
            PersistenceError: Store failure (nothing changed)
        """
        property_id = self._locate(booking_id)
        logger.info(f"Confirming booking {booking_id} (payment {payment_reference})")

        with self._locks.hold(property_id):
            with self._uow_factory() as uow:
                booking = self._load(uow, booking_id)
                booking.confirm(dates=dates, payment_reference=payment_reference, at=self._clock())
                uow.bookings.save_booking(booking)
                uow.collect_events(booking)
            self._index.insert(booking)

        logger.info(f"Booking {booking_id} confirmed")
        return booking

    def cancel(self, booking_id: UUID, reason: str = '') -> Booking:
        """
        Cancel a booking and free its dates

        Idempotent: canceling a canceled booking returns it unchanged.

        Raises:
            BookingNotFound: Unknown booking id
            PersistenceError: Store failure (nothing changed)
        """
        booking, changed = self._release(
            booking_id, lambda b, at: b.cancel(reason, at=at)
        )
        if changed:
            logger.info(f"Booking {booking_id} canceled, reason: {reason or '-'}")
        else:
            logger.debug(f"Booking {booking_id} already canceled")
        return booking

    def expire(self, booking_id: UUID) -> bool:
        """
        Cancel a booking whose payment hold timed out

        Returns False when the booking is no longer PENDING.
        """
        booking, changed = self._release(booking_id, lambda b, at: b.expire_hold(at=at))
        if changed:
            logger.info(f"Booking {booking_id} hold expired")
        return changed

    def _release(
        self,
        booking_id: UUID,
        action: Callable[[Booking, datetime], bool],
    ) -> tuple[Booking, bool]:
        property_id = self._locate(booking_id)

        with self._locks.hold(property_id):
            with self._uow_factory() as uow:
                booking = self._load(uow, booking_id)
                changed = action(booking, self._clock())
                if changed:
                    uow.bookings.save_booking(booking)
                    uow.collect_events(booking)
            if not booking.blocks_dates():
                self._index.remove(booking_id)

        return booking, changed

    def _locate(self, booking_id: UUID) -> UUID:
        """Property of a booking, needed before the lock can be taken"""
        property_id = self._index.owner_of(booking_id)
        if property_id is not None:
            return property_id

        with self._uow_factory() as uow:
            booking = uow.bookings.get_booking(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking.property_id

    @staticmethod
    def _load(uow: BookingUnitOfWork, booking_id: UUID) -> Booking:
        booking = uow.bookings.get_booking(booking_id, lock=True)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking
