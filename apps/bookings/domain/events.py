"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange, Money


@dataclass(kw_only=True)
class BookingEvent(DomainEvent):
    booking_id: UUID
    property_id: UUID

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'booking_id': str(self.booking_id),
            'property_id': str(self.property_id),
        })
        return data


@dataclass(kw_only=True)
class BookingCreated(BookingEvent):
    """
    Event: A new booking was accepted in PENDING status

    Triggers:
    - Payment collection by the payment collaborator
    - Hold expiry (periodic task)
    """
    user_id: UUID
    dates: DateRange
    total_price: Money

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'user_id': str(self.user_id),
            'start_date': self.dates.start_date.isoformat(),
            'end_date': self.dates.end_date.isoformat(),
            'total_price': str(self.total_price.amount),
            'currency': self.total_price.currency,
        })
        return data


@dataclass(kw_only=True)
class BookingConfirmed(BookingEvent):
    """Event: Payment captured (PENDING -> CONFIRMED)"""
    payment_reference: str | None
    dates: DateRange

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['payment_reference'] = self.payment_reference
        return data


@dataclass(kw_only=True)
class BookingCanceled(BookingEvent):
    """
    Event: Booking was canceled

    The dates are free again once this is published.
    """
    reason: str
    old_status: str

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({'reason': self.reason, 'old_status': self.old_status})
        return data
