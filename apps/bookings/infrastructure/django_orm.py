"""
Django ORM persistence

Repositories translating between the ORM rows in apps.bookings.models /
apps.properties.models and the engine's domain objects, plus a unit of
work bound to transaction.atomic().

Every database failure surfaces as a domain error so the engine never
has to know about Django exceptions: a row lock not granted in time is a
LockTimeout, anything else a PersistenceError.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID
import logging

from django.db import DatabaseError, transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from shared.application.message_bus import MessageBus
from shared.domain.errors import PersistenceError
from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.entities import Booking, BookingStatus, Property
from apps.bookings.domain.errors import LockTimeout
from apps.bookings.domain.repositories import (
    BookingRepository,
    BookingUnitOfWork,
    PropertyRepository,
)
from apps.bookings.models import Booking as BookingModel
from apps.properties.models import Property as PropertyModel

logger = logging.getLogger(__name__)

# PostgreSQL lock_not_available, raised when lock_timeout expires
LOCK_NOT_AVAILABLE = "55P03"


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def set_lock_timeout(connection, seconds: float) -> None:
    """
    Bound row lock waits for the rest of the current transaction.

    Only PostgreSQL needs it: SQLite serializes writers with its own busy
    timeout and ignores select_for_update.
    """

    if connection.vendor != "postgresql":
        return
    with connection.cursor() as cursor:
        cursor.execute(
            "SELECT set_config('lock_timeout', %s, true)",
            [f"{max(1, int(seconds * 1000))}ms"],
        )


def is_lock_timeout(error: DatabaseError) -> bool:
    cause = error.__cause__
    code = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if code == LOCK_NOT_AVAILABLE:
        return True
    return "database is locked" in str(error)


def _to_domain_booking(row: BookingModel) -> Booking:
    try:
        return Booking(
            id=row.id,
            property_id=row.property_id,
            user_id=row.user_id,
            dates=DateRange(row.start_date, row.end_date),
            nightly_rate=Money(row.nightly_rate, row.currency),
            total_price=Money(row.total_price, row.currency),
            status=BookingStatus(row.status),
            payment_reference=row.payment_reference or None,
            cancellation_reason=row.cancellation_reason,
            confirmed_at=row.confirmed_at,
            canceled_at=row.canceled_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
    except ValueError as e:
        raise PersistenceError(f"Booking {row.id} holds unusable data: {e}") from e


def _to_domain_property(row: PropertyModel) -> Property:
    try:
        nightly_rate = Money(row.price_per_night, row.currency)
    except ValueError as e:
        raise PersistenceError(f"Property {row.id} holds unusable data: {e}") from e
    return Property(
        id=row.id,
        host_id=row.host_id,
        nightly_rate=nightly_rate,
        name=row.name,
    )


class _DjangoRepository:

    def __init__(self, lock_timeout: float | None = None):
        self.lock_timeout = lock_timeout

    def _first(self, queryset, resource_id: UUID, what: str, lock: bool):
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        try:
            return queryset.first()
        except DatabaseError as e:
            if lock and is_lock_timeout(e):
                logger.warning(f"Row lock timeout on {what} {resource_id}")
                raise LockTimeout(resource_id, self.lock_timeout or 0.0) from e
            raise PersistenceError(f"Could not load {what} {resource_id}: {e}") from e


class DjangoBookingRepository(_DjangoRepository, BookingRepository):

    def load_bookings_for_property(self, property_id: UUID) -> list[Booking]:
        try:
            rows = list(
                BookingModel.objects.filter(property_id=property_id).order_by("start_date")
            )
        except DatabaseError as e:
            raise PersistenceError(f"Could not load bookings of property {property_id}: {e}") from e
        return [_to_domain_booking(row) for row in rows]

    def get_booking(self, booking_id: UUID, lock: bool = False) -> Booking | None:
        row = self._first(BookingModel.objects.filter(pk=booking_id), booking_id, "booking", lock)
        return _to_domain_booking(row) if row is not None else None

    def save_booking(self, booking: Booking) -> None:
        try:
            BookingModel.objects.update_or_create(
                pk=booking.id,
                defaults={
                    "property_id": booking.property_id,
                    "user_id": booking.user_id,
                    "start_date": booking.dates.start_date,
                    "end_date": booking.dates.end_date,
                    "nightly_rate": booking.nightly_rate.amount,
                    "total_price": booking.total_price.amount,
                    "currency": booking.total_price.currency,
                    "status": booking.status.value,
                    "payment_reference": booking.payment_reference or "",
                    "cancellation_reason": booking.cancellation_reason,
                    "confirmed_at": booking.confirmed_at,
                    "canceled_at": booking.canceled_at,
                    "created_at": booking.created_at,
                    "updated_at": booking.updated_at,
                },
            )
        except DatabaseError as e:
            # IntegrityError from the active-dates unique constraint lands here too
            raise PersistenceError(f"Could not save booking {booking.id}: {e}") from e

    def list_pending_created_before(self, cutoff: datetime) -> list[Booking]:
        try:
            rows = list(
                BookingModel.objects.filter(
                    status=BookingModel.Status.PENDING,
                    created_at__lt=cutoff,
                ).order_by("created_at")
            )
        except DatabaseError as e:
            raise PersistenceError(f"Could not list pending bookings: {e}") from e
        return [_to_domain_booking(row) for row in rows]


class DjangoPropertyRepository(_DjangoRepository, PropertyRepository):

    def load_property(self, property_id: UUID, lock: bool = False) -> Property | None:
        # Row lock serializes reservations of this property across processes
        row = self._first(PropertyModel.objects.filter(pk=property_id), property_id, "property", lock)
        return _to_domain_property(row) if row is not None else None


class DjangoUnitOfWork(BookingUnitOfWork):
    """
    Django implementation of Unit of Work

    Manages Django database transactions and ensures domain events
    are published after successful commit. With `lock_timeout` set, row
    lock waits inside the transaction are bounded to that many seconds.

    Usage:
        with DjangoUnitOfWork(lock_timeout=5.0) as uow:
            booking = uow.bookings.get_booking(booking_id, lock=True)
            booking.confirm()
            uow.bookings.save_booking(booking)
            uow.collect_events(booking)
            # Transaction commits here
        # Events are published after commit
    """

    def __init__(
        self,
        bus: MessageBus | None = None,
        using: str | None = None,
        lock_timeout: float | None = None,
    ):
        super().__init__(bus)
        self.using = using
        self.lock_timeout = lock_timeout
        self.bookings = DjangoBookingRepository(lock_timeout)
        self.properties = DjangoPropertyRepository(lock_timeout)
        self._transaction = None

    def __enter__(self):
        """Start database transaction"""
        self._transaction = transaction.atomic(using=self.using)
        self._transaction.__enter__()
        if self.lock_timeout:
            try:
                set_lock_timeout(transaction.get_connection(self.using), self.lock_timeout)
            except DatabaseError as e:
                atomic, self._transaction = self._transaction, None
                atomic.__exit__(type(e), e, e.__traceback__)
                raise PersistenceError(f"Could not start transaction: {e}") from e
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Complete or rollback transaction"""
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            atomic, self._transaction = self._transaction, None
            if atomic is not None:
                try:
                    atomic.__exit__(exc_type, exc_val, exc_tb)
                except DatabaseError as e:
                    if exc_type is not None:
                        raise
                    raise PersistenceError(f"Transaction commit failed: {e}") from e

    def commit(self):
        """
        Schedule event publishing

        The atomic block commits when the context exits; events go out
        through transaction.on_commit() so a failed commit never
        publishes them.
        """
        events = self._drain_events()
        logger.debug(f"Committing transaction with {len(events)} events")
        if events:
            transaction.on_commit(lambda: self._publish_events(events), using=self.using)

    def rollback(self):
        """Rollback changes and discard events"""
        self._discard_events()
