"""
Booking event handlers

Audit trail of the booking lifecycle. Handlers run after the transaction
committed; a failing handler is logged by the bus and never undoes the
state change.
"""

from __future__ import annotations

import structlog

from shared.application.message_bus import MessageBus, message_bus
from apps.bookings.domain.events import (
    BookingCanceled,
    BookingConfirmed,
    BookingCreated,
    BookingEvent,
)

audit_logger = structlog.get_logger("bookings.audit")


def log_booking_event(event: BookingEvent) -> None:
    audit_logger.info(type(event).__name__, **event.to_dict())


def register_event_handlers(bus: MessageBus | None = None) -> None:
    """Attach the audit handlers. Safe to call more than once."""

    bus = bus or message_bus
    for event_type in (BookingCreated, BookingConfirmed, BookingCanceled):
        bus.register_event_handler(event_type, log_booking_event)
