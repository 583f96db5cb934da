"""
Pricing Calculator

total_price = nightly_rate * nights, computed once when the booking is
created and stored on it. A later change of the property's rate never
touches existing bookings.
"""

from dataclasses import dataclass
import logging

from shared.domain.errors import InvalidPrice
from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.entities import Property

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    """Price snapshot for one stay."""
    nightly_rate: Money
    nights: int
    list_total: Money
    total: Money

    @property
    def is_override(self) -> bool:
        return self.total != self.list_total


class PricingCalculator:
    """Derives the stored booking price from the property's nightly rate."""

    def price(self, prop: Property, dates: DateRange) -> Money:
        return prop.nightly_rate * dates.nights

    def quote(self, prop: Property, dates: DateRange, override: Money | None = None) -> Quote:
        """
        Price a stay

        Args:
            prop: Property being booked
            dates: Requested range
            override: Negotiated total replacing the list price

        Raises:
            InvalidPrice: If the resulting total is not positive or the
                override currency differs from the property's
        """
        list_total = self.price(prop, dates)
        total = list_total

        if override is not None:
            if override.currency != list_total.currency:
                raise InvalidPrice(
                    f"Override currency {override.currency} does not match "
                    f"property currency {list_total.currency}"
                )
            total = override
            logger.info(
                f"Price override for property {prop.id} {dates}: "
                f"list {list_total}, charged {total}"
            )

        if total.is_zero():
            raise InvalidPrice(f"Total price for property {prop.id} must be positive")

        return Quote(
            nightly_rate=prop.nightly_rate,
            nights=dates.nights,
            list_total=list_total,
            total=total,
        )
