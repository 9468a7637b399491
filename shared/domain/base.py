"""
Base Domain Classes

Building blocks shared by the domain apps:
- DomainEvent: something that happened, published after commit
- EventRecorder: collects events raised while a transaction is open
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import List
from uuid import UUID, uuid4


@dataclass(kw_only=True)
class DomainEvent:
    """
    Base class for domain events

    Subclasses add their own payload fields. Events are immutable records
    of a committed state change and are safe to hand to any subscriber.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict:
        """Convert event to a JSON-friendly dictionary"""
        payload = {}
        for key, value in asdict(self).items():
            if isinstance(value, (UUID, date, datetime)):
                value = str(value) if isinstance(value, UUID) else value.isoformat()
            payload[key] = value
        payload['event_type'] = self.name
        return payload


class EventRecorder:
    """
    Mixin for objects that raise domain events

    Events stay here until a unit of work collects them; nothing is
    published from inside a transaction.
    """

    def __init__(self):
        self._events: List[DomainEvent] = []

    def record(self, event: DomainEvent):
        self._events.append(event)

    def pull_events(self) -> List[DomainEvent]:
        """Return and forget the recorded events"""
        events, self._events = self._events, []
        return events
