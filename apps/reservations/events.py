"""
Reservation Domain Events

Published through the message bus after the transaction that produced them
has committed.
"""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class HoldEvent(DomainEvent):
    reservation_id: UUID
    service: str
    date: date
    slot: str


@dataclass(kw_only=True)
class HoldPlaced(HoldEvent):
    """A soft hold took one unit of capacity until expires_at."""
    user_email: str
    expires_at: datetime


@dataclass(kw_only=True)
class HoldCommitted(HoldEvent):
    """Payment succeeded: the unit moved from reserved to confirmed."""


@dataclass(kw_only=True)
class HoldReleased(HoldEvent):
    """Cancelled before payment: the unit went back to the pool."""


@dataclass(kw_only=True)
class HoldExpired(HoldEvent):
    """The sweeper reclaimed a hold nobody paid for."""


@dataclass(kw_only=True)
class CounterClamped(HoldEvent):
    """
    A reserved-counter decrement would have gone below zero

    Never expected in normal operation; points at a double release or a
    bookkeeping bug.
    """
    operation: str
