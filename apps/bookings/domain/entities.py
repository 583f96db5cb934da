"""
Booking Domain Entities

Core business entities for the booking domain:
- Property: Read-mostly reference data consulted for pricing
- BookingStatus: FSM states for booking lifecycle
- Booking: Main aggregate representing a reservation
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from shared.domain.base import Aggregate, utcnow
from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.errors import BookingClosed, InvalidTransition
from apps.bookings.domain.events import BookingCanceled, BookingConfirmed, BookingCreated

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.bookings.domain.pricing import Quote


@dataclass(frozen=True)
class Property:
    """Property as seen by the booking engine. Not owned by it."""
    id: UUID
    host_id: UUID
    nightly_rate: Money
    name: str = ''


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (payment captured)
    - PENDING -> CANCELED (hold timeout, user cancellation, lost conflict)
    - CONFIRMED -> CANCELED (refund flow)

    CANCELED is terminal.
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELED = 'canceled'

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]

    @property
    def blocks_dates(self) -> bool:
        return self in (BookingStatus.PENDING, BookingStatus.CONFIRMED)


HOLD_EXPIRED_REASON = 'hold expired'

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELED}),
    BookingStatus.CANCELED: frozenset(),
}


@dataclass(kw_only=True, eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Represents a guest's reservation of a property for specific dates.

    Key invariants:
    - Booking has a valid half-open date range (start < end)
    - Price is fixed at creation and never recomputed
    - Status changes only along ALLOWED_TRANSITIONS; CANCELED is final
    - Every transition stamps updated_at explicitly
    """

    property_id: UUID
    user_id: UUID
    dates: DateRange

    # Price fixed at creation time
    nightly_rate: Money
    total_price: Money

    status: BookingStatus = BookingStatus.PENDING
    payment_reference: str | None = None
    cancellation_reason: str = ''

    confirmed_at: datetime | None = None
    canceled_at: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        property_id: UUID,
        user_id: UUID,
        dates: DateRange,
        quote: 'Quote',
        at: datetime | None = None,
    ) -> 'Booking':
        """Build a new PENDING booking from a price quote. Events: BookingCreated"""
        at = at or utcnow()
        booking = cls(
            property_id=property_id,
            user_id=user_id,
            dates=dates,
            nightly_rate=quote.nightly_rate,
            total_price=quote.total,
            created_at=at,
            updated_at=at,
        )
        booking.add_event(BookingCreated(
            aggregate_id=booking.id,
            booking_id=booking.id,
            property_id=property_id,
            user_id=user_id,
            dates=dates,
            total_price=booking.total_price,
            occurred_at=at,
        ))
        return booking

    def confirm(
        self,
        dates: DateRange | None = None,
        payment_reference: str | None = None,
        at: datetime | None = None,
    ):
        """
        Confirm payment (PENDING -> CONFIRMED)

        When the payment collaborator passes the dates it charged for,
        they must still match this booking. A mismatch means a stale
        retry and is rejected.
        Events: BookingConfirmed
        """
        self._check_transition(BookingStatus.CONFIRMED)
        if dates is not None and dates != self.dates:
            raise InvalidTransition(
                self.id,
                f"Booking {self.id} covers {self.dates}, payment was captured for {dates}",
            )

        self._transition(BookingStatus.CONFIRMED, at)
        self.payment_reference = payment_reference
        self.confirmed_at = self.updated_at

        self.add_event(BookingConfirmed(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            payment_reference=payment_reference,
            dates=self.dates,
            occurred_at=self.updated_at,
        ))

    def cancel(self, reason: str = '', at: datetime | None = None) -> bool:
        """
        Cancel booking (PENDING|CONFIRMED -> CANCELED)

        Canceling a canceled booking is a no-op and returns False.
        Events: BookingCanceled
        """
        if self.status is BookingStatus.CANCELED:
            return False

        old_status = self.status
        self._transition(BookingStatus.CANCELED, at)
        self.cancellation_reason = reason
        self.canceled_at = self.updated_at

        self.add_event(BookingCanceled(
            aggregate_id=self.id,
            booking_id=self.id,
            property_id=self.property_id,
            reason=reason,
            old_status=old_status.value,
            occurred_at=self.updated_at,
        ))
        return True

    def expire_hold(self, at: datetime | None = None) -> bool:
        """
        Cancel an unpaid hold (PENDING -> CANCELED)

        Bookings in any other status are left alone and False is returned,
        so a payment confirmed just before expiry wins.
        """
        if self.status is not BookingStatus.PENDING:
            return False
        return self.cancel(HOLD_EXPIRED_REASON, at)

    def _check_transition(self, target: BookingStatus):
        if self.status.is_terminal:
            raise BookingClosed(self.id, self.status.value)
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransition(
                self.id,
                f"Cannot move booking {self.id} from {self.status.value} to {target.value}",
            )

    def _transition(self, target: BookingStatus, at: datetime | None):
        self._check_transition(target)
        self.status = target
        self.touch(at)

    def blocks_dates(self) -> bool:
        """Only PENDING and CONFIRMED bookings block property dates"""
        return self.status.blocks_dates

    @property
    def nights(self) -> int:
        return self.dates.nights

    def __str__(self):
        return f"Booking {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, property_id={self.property_id}, "
            f"status={self.status.value}, dates={self.dates!r})"
        )
