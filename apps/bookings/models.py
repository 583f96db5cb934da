"""Booking persistence model.

Rows here are the source of truth. The domain aggregate in
apps.bookings.domain.entities owns every status change and timestamp;
this model only stores what the aggregate decided.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import SUPPORTED_CURRENCIES
from apps.properties.models import CURRENCY_CHOICES


class Booking(models.Model):
    """A reservation of a property for a half-open date range."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELED = "canceled", _("Canceled")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    user_id = models.UUIDField()
    start_date = models.DateField()
    end_date = models.DateField()
    nightly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Nightly rate fixed at booking time."),
    )
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="USD")
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    payment_reference = models.CharField(max_length=255, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    # Written by the domain on every transition, not auto_now
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="chk_booking_dates_valid",
            ),
            models.CheckConstraint(
                condition=models.Q(total_price__gt=Decimal("0")),
                name="chk_booking_total_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(currency__in=SUPPORTED_CURRENCIES),
                name="chk_booking_currency_supported",
            ),
            # Backstop only: overlap prevention is the engine's job
            models.UniqueConstraint(
                fields=["property", "start_date", "end_date"],
                condition=~models.Q(status="canceled"),
                name="uk_booking_property_dates_active",
            ),
        ]
        indexes = [
            models.Index(fields=["property", "start_date", "end_date"], name="idx_booking_property_dates"),
            models.Index(fields=["user_id", "status"], name="idx_booking_user_status"),
            models.Index(fields=["status", "created_at"], name="idx_booking_status_created"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.id} for {self.property_id} ({self.status})"
