"""Builders shared by the booking tests."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.entities import Booking, Property
from apps.bookings.domain.pricing import PricingCalculator

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def d(day: int, month: int = 7) -> date:
    return date(2025, month, day)


def make_property(rate: str = "80.00", name: str = "") -> Property:
    return Property(id=uuid4(), host_id=uuid4(), nightly_rate=Money(Decimal(rate)), name=name)


def make_booking(property_id, start: date, end: date, rate: str = "80.00", **kwargs) -> Booking:
    prop = Property(id=property_id, host_id=uuid4(), nightly_rate=Money(Decimal(rate)))
    dates = DateRange(start, end)
    booking = Booking.create(
        property_id=property_id,
        user_id=kwargs.pop("user_id", uuid4()),
        dates=dates,
        quote=PricingCalculator().quote(prop, dates),
        at=kwargs.pop("at", NOW),
    )
    booking.clear_events()
    return booking


class Clock:
    """Settable clock for the engine."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now
