from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from shared.domain.errors import ErrorCode
from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.entities import (
    ALLOWED_TRANSITIONS,
    HOLD_EXPIRED_REASON,
    Booking,
    BookingStatus,
)
from apps.bookings.domain.errors import BookingClosed, InvalidTransition
from apps.bookings.domain.events import BookingCanceled, BookingConfirmed, BookingCreated
from apps.bookings.domain.pricing import PricingCalculator
from apps.bookings.tests.factories import NOW, d, make_booking, make_property


@pytest.fixture
def booking():
    return make_booking(uuid4(), d(1), d(5))


def test_create_starts_pending_with_fixed_price():
    prop = make_property("80.00")
    dates = DateRange(d(1), d(5))

    booking = Booking.create(
        property_id=prop.id,
        user_id=uuid4(),
        dates=dates,
        quote=PricingCalculator().quote(prop, dates),
        at=NOW,
    )

    assert booking.status is BookingStatus.PENDING
    assert booking.total_price == Money(Decimal("320.00"))
    assert booking.nightly_rate == Money(Decimal("80.00"))
    assert booking.created_at == booking.updated_at == NOW
    [event] = booking.events
    assert isinstance(event, BookingCreated)
    assert event.to_dict()["total_price"] == "320.00"


def test_terminal_status():
    assert BookingStatus.CANCELED.is_terminal
    assert not BookingStatus.PENDING.is_terminal
    assert ALLOWED_TRANSITIONS[BookingStatus.CONFIRMED] == {BookingStatus.CANCELED}


class TestConfirm:
    def test_pending_to_confirmed(self, booking):
        later = NOW + timedelta(minutes=3)

        booking.confirm(payment_reference="pay_123", at=later)

        assert booking.status is BookingStatus.CONFIRMED
        assert booking.payment_reference == "pay_123"
        assert booking.confirmed_at == booking.updated_at == later
        assert isinstance(booking.events[-1], BookingConfirmed)

    def test_matching_dates_are_accepted(self, booking):
        booking.confirm(dates=DateRange(d(1), d(5)))
        assert booking.status is BookingStatus.CONFIRMED

    def test_stale_dates_are_rejected(self, booking):
        with pytest.raises(InvalidTransition):
            booking.confirm(dates=DateRange(d(2), d(5)))
        assert booking.status is BookingStatus.PENDING

    def test_confirm_twice_is_invalid(self, booking):
        booking.confirm()
        with pytest.raises(InvalidTransition) as exc:
            booking.confirm()
        assert exc.value.code is ErrorCode.INVALID_TRANSITION

    def test_canceled_booking_is_closed(self, booking):
        booking.cancel()
        with pytest.raises(BookingClosed) as exc:
            booking.confirm()
        assert isinstance(exc.value, InvalidTransition)
        assert exc.value.code is ErrorCode.BOOKING_CLOSED


class TestCancel:
    @pytest.mark.parametrize("confirm_first", [False, True])
    def test_cancel_frees_dates(self, booking, confirm_first):
        if confirm_first:
            booking.confirm()
        later = NOW + timedelta(hours=1)

        assert booking.cancel("guest request", at=later) is True

        assert booking.status is BookingStatus.CANCELED
        assert not booking.blocks_dates()
        assert booking.cancellation_reason == "guest request"
        assert booking.canceled_at == booking.updated_at == later
        event = booking.events[-1]
        assert isinstance(event, BookingCanceled)
        assert event.old_status == ("confirmed" if confirm_first else "pending")

    def test_cancel_is_idempotent(self, booking):
        booking.cancel("first")
        stamped = booking.updated_at
        events = len(booking.events)

        assert booking.cancel("second") is False

        assert booking.cancellation_reason == "first"
        assert booking.updated_at == stamped
        assert len(booking.events) == events

    def test_expire_hold_only_touches_pending(self, booking):
        confirmed = make_booking(uuid4(), d(1), d(5))
        confirmed.confirm()

        assert confirmed.expire_hold() is False
        assert confirmed.status is BookingStatus.CONFIRMED

        assert booking.expire_hold() is True
        assert booking.cancellation_reason == HOLD_EXPIRED_REASON
