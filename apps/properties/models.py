"""Property persistence model."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import SUPPORTED_CURRENCIES

CURRENCY_CHOICES = [(code, code) for code in SUPPORTED_CURRENCIES]


class Property(models.Model):
    """A listing offered for nightly rental."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    host_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=255)
    description = models.TextField()
    location = models.CharField(max_length=500)
    price_per_night = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="USD")
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Property")
        verbose_name_plural = _("Properties")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price_per_night__gt=Decimal("0")),
                name="chk_property_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(currency__in=SUPPORTED_CURRENCIES),
                name="chk_property_currency_supported",
            ),
        ]
        indexes = [
            models.Index(fields=["host_id", "created_at"], name="idx_property_host_created"),
            models.Index(fields=["location"], name="idx_property_location"),
            models.Index(fields=["price_per_night"], name="idx_property_price"),
        ]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            self.updated_at = timezone.now()
        super().save(*args, **kwargs)
