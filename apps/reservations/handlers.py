"""Message bus subscribers for reservation events."""

import json
import logging

from shared.application.message_bus import message_bus
from shared.domain.base import DomainEvent

from .events import HoldEvent

logger = logging.getLogger("apps.reservations.audit")


def log_hold_event(event: DomainEvent):
    """Audit trail: one line per committed state change."""
    logger.info(f"{event.name} {json.dumps(event.to_dict(), sort_keys=True)}")


def register(bus=message_bus):
    bus.subscribe(HoldEvent, log_hold_event)
