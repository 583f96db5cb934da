from datetime import date, timedelta
from decimal import Decimal

import pytest

from shared.domain.errors import ErrorCode, InvalidInterval
from shared.domain.value_objects import DateRange, Money


def d(day: int, month: int = 7) -> date:
    return date(2025, month, day)


class TestDateRange:
    def test_end_must_follow_start(self):
        with pytest.raises(InvalidInterval) as exc:
            DateRange(d(5), d(5))
        assert exc.value.code is ErrorCode.INVALID_INTERVAL

        with pytest.raises(ValueError):
            DateRange(d(5), d(1))

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((1, 5), (3, 6), True),
            ((1, 5), (2, 3), True),
            ((1, 5), (5, 8), False),
            ((5, 8), (1, 5), False),
            ((1, 2), (3, 4), False),
        ],
    )
    def test_overlap_is_symmetric(self, a, b, expected):
        first, second = DateRange(d(a[0]), d(a[1])), DateRange(d(b[0]), d(b[1]))
        assert first.overlaps(second) is expected
        assert second.overlaps(first) is expected

    def test_range_overlaps_itself(self):
        single_night = DateRange(d(1), d(2))
        assert single_night.overlaps(single_night)

    def test_back_to_back_ranges_never_overlap(self):
        start = d(1)
        for length in (1, 2, 7, 30):
            first = DateRange(start, start + timedelta(days=length))
            second = DateRange(first.end_date, first.end_date + timedelta(days=3))
            assert not first.overlaps(second)

    def test_contains_is_half_open(self):
        stay = DateRange(d(1), d(5))
        assert stay.contains(d(1))
        assert stay.contains(d(4))
        assert not stay.contains(d(5))

    def test_nights(self):
        stay = DateRange(d(28, 6), d(3))
        assert stay.nights == 5
        assert len(stay) == 5
        assert str(stay) == "[2025-06-28, 2025-07-03)"

    def test_overlap_with_other_types_is_rejected(self):
        with pytest.raises(TypeError):
            DateRange(d(1), d(2)).overlaps((d(1), d(2)))


class TestMoney:
    def test_amount_is_coerced_to_decimal(self):
        assert Money("80.00").amount == Decimal("80.00")
        assert Money(80) == Money(Decimal("80"))

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            Money(Decimal("-1"))

    def test_unknown_currency_rejected(self):
        with pytest.raises(ValueError):
            Money(Decimal("1"), "XYZ")

    def test_arithmetic(self):
        rate = Money(Decimal("80.00"))
        assert rate * 4 == Money(Decimal("320.00"))
        assert rate + rate - rate == rate

    def test_currencies_do_not_mix(self):
        with pytest.raises(ValueError):
            Money(Decimal("1"), "USD") + Money(Decimal("1"), "EUR")

    def test_multiplication_needs_number(self):
        with pytest.raises(TypeError):
            Money(Decimal("1")) * True
        with pytest.raises(TypeError):
            Money(Decimal("1")) * 1.5
