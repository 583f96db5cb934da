"""Reservation policy: limits a request must satisfy before any lookup."""

from dataclasses import dataclass
from datetime import date

from shared.domain.errors import InvalidInterval
from shared.domain.value_objects import DateRange

DEFAULT_MAX_NIGHTS = 365


@dataclass(frozen=True)
class ReservationPolicy:
    """
    max_nights: longest stay accepted.
    allow_past_start: accept ranges starting before today, for backfilling
        historical bookings.
    """
    max_nights: int = DEFAULT_MAX_NIGHTS
    allow_past_start: bool = False

    def __post_init__(self):
        if self.max_nights < 1:
            raise ValueError("max_nights must be at least 1")

    def validate(self, dates: DateRange, today: date):
        if dates.nights > self.max_nights:
            raise InvalidInterval(
                f"Stay of {dates.nights} nights exceeds the maximum of {self.max_nights}"
            )
        if not self.allow_past_start and dates.start_date < today:
            raise InvalidInterval(f"Start date {dates.start_date} is in the past")
