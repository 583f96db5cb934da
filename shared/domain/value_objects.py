"""
Common Value Objects

Value objects used across multiple domains:
- Money: Represents monetary amounts with currency
- DateRange: Represents a half-open range of dates (check-in to check-out)
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shared.domain.base import ValueObject
from shared.domain.errors import InvalidInterval

SUPPORTED_CURRENCIES = ('USD', 'EUR', 'MAD', 'KZT', 'RUB')


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Non-negative decimal amount in one currency

    Booking prices are stored as Money and never mixed across currencies.
    """
    amount: Decimal
    currency: str = 'USD'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError(f"Negative amount: {self.amount}")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency!r}")

    def _same_currency(self, other: 'Money', operation: str):
        if not isinstance(other, Money):
            raise TypeError(f"Cannot {operation} Money and {type(other).__name__}")
        if self.currency != other.currency:
            raise ValueError(f"Cannot {operation} {self.currency} and {other.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        self._same_currency(other, 'add')
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._same_currency(other, 'subtract')
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor: int | Decimal) -> 'Money':
        if isinstance(factor, bool) or not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by int or Decimal")
        return Money(self.amount * factor, self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self):
        return f"{self.amount:.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, {self.currency!r})"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Half-open stay [start_date, end_date)

    start_date is the check-in day, end_date the check-out day. The
    check-out day is free for the next guest.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.end_date <= self.start_date:
            raise InvalidInterval(
                f"Start date ({self.start_date}) must be before end date ({self.end_date})"
            )

    def overlaps(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Two ranges overlap if they share any night.
        end_date is exclusive, so adjacent ranges don't overlap.

        Examples:
            - DateRange(25, 28) overlaps with DateRange(27, 30) -> True
            - DateRange(25, 28) overlaps with DateRange(28, 31) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        return self.start_date < other.end_date and other.start_date < self.end_date

    def contains(self, check_date: date) -> bool:
        """start_date is inclusive, end_date is exclusive"""
        return self.start_date <= check_date < self.end_date

    @property
    def nights(self) -> int:
        """Number of nights, always at least 1"""
        return (self.end_date - self.start_date).days

    def __len__(self) -> int:
        return self.nights

    def __str__(self):
        return f"[{self.start_date.isoformat()}, {self.end_date.isoformat()})"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
