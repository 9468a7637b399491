"""
Message Bus

Routes committed domain events to their subscribers. Subscribers are
side-effect handlers (audit logging, notifications) and can never undo the
state change that produced the event.
"""

from typing import Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Event bus: multiple handlers per event type (1:N)

    Handlers registered for DomainEvent itself receive every event.
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler):
        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"Subscribed {handler.__name__} to {event_type.__name__}")

    def unsubscribe(self, event_type: Type[DomainEvent], handler: EventHandler):
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event: DomainEvent) -> List[EventHandler]:
        matched: List[EventHandler] = []
        for event_type in type(event).__mro__:
            matched.extend(self._handlers.get(event_type, []))
        return matched

    def publish(self, events: Iterable[DomainEvent]):
        """
        Deliver events to every matching handler

        Errors in handlers are logged but don't stop other handlers.
        """
        for event in events:
            for handler in self.handlers_for(event):
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Error in event handler {handler.__name__} for {event.name}: {e}",
                        exc_info=True,
                    )


# Global message bus instance
message_bus = MessageBus()
