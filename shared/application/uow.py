"""
Unit of Work Pattern

Manages transactions and ensures that domain events
are published only after successful transaction commit.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """
    Abstract Unit of Work pattern

    Usage:
        with uow:
            booking = uow.bookings.get_booking(booking_id, lock=True)
            booking.confirm()
            uow.bookings.save_booking(booking)
            uow.collect_events(booking)
        # Commits on clean exit, rolls back on any exception.
        # Events are published after commit.
    """

    def __init__(self, bus: MessageBus | None = None):
        self._events: List[DomainEvent] = []
        self._bus = bus

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""

    def collect_events(self, aggregate):
        """
        Collect events from aggregate root

        Extracts all domain events from the aggregate and
        clears them from the aggregate.
        """
        new_events = aggregate.events
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                f"Collected {len(new_events)} events from "
                f"{aggregate.__class__.__name__} (ID: {aggregate.id})"
            )

    def _drain_events(self) -> List[DomainEvent]:
        events = self._events.copy()
        self._events.clear()
        return events

    def _discard_events(self):
        if self._events:
            logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()

    def _publish_events(self, events: List[DomainEvent]):
        """
        Publish collected events to the message bus

        Called after successful transaction commit.
        """
        if not events:
            return

        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus
            bus = message_bus

        logger.info(f"Publishing {len(events)} domain events after commit")
        bus.publish_events(events)
