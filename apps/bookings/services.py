"""Wiring of the booking engine for the Django deployment."""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache, partial
from typing import Any

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.application.coordinator import ReservationCoordinator
from apps.bookings.application.locks import PropertyLockRegistry
from apps.bookings.domain.availability import AvailabilityIndex
from apps.bookings.domain.policy import ReservationPolicy
from apps.bookings.infrastructure.django_orm import DjangoUnitOfWork

DEFAULT_ENGINE_SETTINGS: dict[str, Any] = {
    "LOCK_TIMEOUT_SECONDS": 5.0,
    "MAX_NIGHTS": 365,
    "ALLOW_PAST_START": False,
    "PENDING_HOLD_MINUTES": 15,
    "REFRESH_INDEX_ON_RESERVE": True,
}


def engine_settings() -> dict[str, Any]:
    """BOOKING_ENGINE from settings merged over the defaults."""

    return {**DEFAULT_ENGINE_SETTINGS, **getattr(settings, "BOOKING_ENGINE", {})}


def pending_hold() -> timedelta:
    return timedelta(minutes=engine_settings()["PENDING_HOLD_MINUTES"])


def build_coordinator(index: AvailabilityIndex | None = None) -> ReservationCoordinator:
    """Create a coordinator backed by the Django ORM."""

    config = engine_settings()
    lock_timeout = float(config["LOCK_TIMEOUT_SECONDS"])
    return ReservationCoordinator(
        uow_factory=partial(DjangoUnitOfWork, lock_timeout=lock_timeout),
        index=index if index is not None else AvailabilityIndex(),
        locks=PropertyLockRegistry(timeout=lock_timeout),
        policy=ReservationPolicy(
            max_nights=int(config["MAX_NIGHTS"]),
            allow_past_start=bool(config["ALLOW_PAST_START"]),
        ),
        clock=timezone.now,
        refresh_index=bool(config["REFRESH_INDEX_ON_RESERVE"]),
    )


@lru_cache(maxsize=1)
def get_coordinator() -> ReservationCoordinator:
    """Process-wide coordinator shared by views and tasks."""

    return build_coordinator()
