"""
Unit of Work Pattern

Wraps one database transaction and publishes the domain events recorded
during it only after the transaction has committed.
"""

from typing import Optional
import logging

from django.db import transaction

from shared.domain.base import EventRecorder

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(EventRecorder):
    """
    Django implementation of Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            record = store.lock(key)
            ...
            uow.record(HoldPlaced(...))
        # HoldPlaced reaches the message bus after COMMIT

    On exception the transaction rolls back and recorded events are dropped.
    One instance per transaction; instances are not shared between threads.
    """

    def __init__(self, bus=None, using: Optional[str] = None):
        super().__init__()
        self.using = using
        self._bus = bus
        self._atomic = None

    @property
    def bus(self):
        if self._bus is None:
            from shared.application.message_bus import message_bus

            self._bus = message_bus
        return self._bus

    def __enter__(self):
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        events = self.pull_events()
        if exc_type is None and events:
            bus = self.bus
            transaction.on_commit(lambda: bus.publish(events), using=self.using)
        elif events:
            logger.debug(f"Rolling back transaction, discarding {len(events)} events")
        return self._atomic.__exit__(exc_type, exc_val, exc_tb)
