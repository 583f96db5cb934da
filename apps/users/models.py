"""User model for the booking service."""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser, UserManager  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class User(AbstractUser):
    """
    Account calling the booking API.

    Guests reserve and cancel their own bookings. Confirming a booking is
    the payment collaborator's signal: staff accounts, or accounts granted
    bookings.change_booking (the payment service), may send it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    objects = UserManager()

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")

    def can_collect_payments(self) -> bool:
        return self.is_active and (self.is_staff or self.has_perm("bookings.change_booking"))
