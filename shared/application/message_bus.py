"""
Message Bus

Central hub for routing domain events to their handlers.
Implements the Mediator pattern for decoupling components.
"""

from typing import Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class MessageBus:
    """
    Message bus for domain events

    Events: Multiple handlers per event (1:N)
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}

    def register_event_handler(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ):
        """
        Register an event handler

        Multiple handlers can be registered for the same event type.
        Registering the same handler twice is a no-op.
        """
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler in handlers:
            return
        handlers.append(handler)
        logger.debug(f"Registered event handler for {event_type.__name__}")

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[Callable]:
        return list(self._event_handlers.get(event_type, []))

    def publish_events(self, events: List[DomainEvent]):
        """
        Publish domain events

        All registered handlers for each event type will be called.
        Errors in handlers are logged but don't stop other handlers:
        the state change they describe is already committed.
        """
        for event in events:
            event_type = type(event)
            handlers = self._event_handlers.get(event_type, [])

            if not handlers:
                logger.debug(f"No handlers registered for event {event_type.__name__}")
                continue

            logger.info(f"Publishing event: {event_type.__name__} (ID: {event.event_id})")

            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Error in event handler {getattr(handler, '__name__', handler)} "
                        f"for event {event_type.__name__}: {e}",
                        exc_info=True
                    )


# Process-wide bus used when a unit of work is not given one explicitly
message_bus = MessageBus()
