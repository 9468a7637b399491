"""Reservation lifecycle: soft holds, commit, release and expiry."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from django.conf import settings  # type: ignore
from django.db import IntegrityError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.capacity.models import AvailabilityRecord
from apps.capacity.services import AvailabilityStore, CapacityKey
from shared.application.uow import DjangoUnitOfWork

from .events import CounterClamped, HoldCommitted, HoldExpired, HoldPlaced, HoldReleased
from .exceptions import CapacityFull, ReservationExpired, ReservationNotActive, ReservationNotFound
from .models import Reservation

logger = logging.getLogger(__name__)


class TransitionOutcome(str, Enum):
    """Result of commit/release/expire. Only APPLIED changed anything."""

    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    INVALID_STATE = "invalid_state"
    NOT_FOUND = "not_found"

    @property
    def changed(self) -> bool:
        return self is TransitionOutcome.APPLIED


def parse_reservation_id(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class ReservationManager:
    """
    Owns every state change of a reservation and its availability counters.

    Each operation is one short transaction. The availability record is the
    only row locked while placing a hold; the capacity check and the
    reserved increment happen under that lock as a conditional UPDATE, so
    concurrent callers can never push reserved + confirmed past capacity.
    Domain events go out after commit.
    """

    def __init__(
        self,
        store: Optional[AvailabilityStore] = None,
        ttl: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
        bus=None,
    ):
        self.store = store or AvailabilityStore()
        self._ttl = ttl
        self.clock = clock or timezone.now
        self.bus = bus

    @property
    def ttl(self) -> timedelta:
        if self._ttl is not None:
            return self._ttl
        return timedelta(minutes=settings.RESERVATION_TTL_MINUTES)

    # Queries

    def availability(self, service, day: date, slot: Optional[str] = None) -> AvailabilityRecord:
        """Counters for one (service, date, slot), materializing the record if needed."""
        return self.store.snapshot(CapacityKey.build(service, day, slot))

    def get(self, reservation_id) -> Reservation:
        pk = parse_reservation_id(reservation_id)
        reservation = Reservation.objects.filter(pk=pk).first() if pk else None
        if reservation is None:
            raise ReservationNotFound()
        return reservation

    def expired_hold_ids(self, now: Optional[datetime] = None) -> list[uuid.UUID]:
        now = now or self.clock()
        return list(
            Reservation.objects.expired(now).order_by("expires_at").values_list("id", flat=True)
        )

    # Hold placement

    def create(
        self,
        *,
        service,
        date: date,
        user_email: str,
        idempotency_key: str,
        slot: Optional[str] = None,
        dog_id: Optional[str] = None,
    ) -> uuid.UUID:
        """
        Place a soft hold and return the reservation id.

        A retry with the key of a still-active reservation returns that
        reservation unchanged. Raises CapacityFull when no unit is left.
        """
        key = CapacityKey.build(service, date, slot)

        existing = self._active_id_for(idempotency_key)
        if existing is not None:
            logger.info(f"Idempotent create for key {idempotency_key} -> {existing}")
            return existing

        try:
            with DjangoUnitOfWork(bus=self.bus) as uow:
                reservation = self._place_hold(uow, key, user_email, dog_id, idempotency_key)
        except IntegrityError:
            # A concurrent create with the same key won; its transaction holds the unit.
            existing = self._active_id_for(idempotency_key)
            if existing is None:
                raise
            logger.info(f"Idempotent create for key {idempotency_key} resolved after conflict -> {existing}")
            return existing

        logger.info(
            f"Hold {reservation.id} placed on {key} for {user_email} "
            f"until {reservation.expires_at.isoformat()}"
        )
        return reservation.id

    def _active_id_for(self, idempotency_key: str) -> Optional[uuid.UUID]:
        return (
            Reservation.objects.active()
            .filter(idempotency_key=idempotency_key)
            .values_list("id", flat=True)
            .first()
        )

    def _place_hold(self, uow, key: CapacityKey, user_email, dog_id, idempotency_key) -> Reservation:
        record = self.store.refresh_capacity(self.store.lock(key))
        if record.remaining <= 0 or not self.store.try_claim(record):
            logger.info(f"Capacity full for {key} ({record.occupied}/{record.capacity})")
            raise CapacityFull()

        now = self.clock()
        reservation = Reservation.objects.create(
            service=key.service,
            date=key.date,
            slot=key.slot,
            user_email=user_email,
            dog_id=dog_id or "",
            status=Reservation.Status.ACTIVE,
            expires_at=now + self.ttl,
            idempotency_key=idempotency_key,
        )
        uow.record(
            HoldPlaced(
                reservation_id=reservation.id,
                service=key.service.value,
                date=key.date,
                slot=key.slot,
                user_email=user_email,
                expires_at=reservation.expires_at,
            )
        )
        return reservation

    # Transitions

    def commit(self, reservation_id) -> TransitionOutcome:
        """
        active -> committed; reserved moves to confirmed.

        Never raises for a missing or terminal reservation: the payment
        webhook must always be able to acknowledge. A hold past expires_at
        that the sweeper has not reclaimed yet still commits.
        """
        return self._transition(
            reservation_id,
            target=Reservation.Status.COMMITTED,
            operation="commit",
            event_class=HoldCommitted,
        )

    def release(self, reservation_id) -> TransitionOutcome:
        """active -> released; the reserved unit goes back. Idempotent."""
        return self._transition(
            reservation_id,
            target=Reservation.Status.RELEASED,
            operation="release",
            event_class=HoldReleased,
        )

    def expire(self, reservation_id, now: Optional[datetime] = None) -> TransitionOutcome:
        """active -> expired, only once expires_at has passed."""
        now = now or self.clock()
        return self._transition(
            reservation_id,
            target=Reservation.Status.EXPIRED,
            operation="expire",
            event_class=HoldExpired,
            now=now,
            extra_filter={"expires_at__lt": now},
        )

    def _transition(
        self,
        reservation_id,
        *,
        target: str,
        operation: str,
        event_class,
        now: Optional[datetime] = None,
        extra_filter: Optional[dict] = None,
    ) -> TransitionOutcome:
        pk = parse_reservation_id(reservation_id)
        if pk is None:
            logger.error(f"Cannot {operation} reservation {reservation_id!r}: malformed id")
            return TransitionOutcome.NOT_FOUND

        now = now or self.clock()
        with DjangoUnitOfWork(bus=self.bus) as uow:
            updated = Reservation.objects.filter(
                pk=pk,
                status=Reservation.Status.ACTIVE,
                **(extra_filter or {}),
            ).update(status=target, closed_at=now, updated_at=now)

            if not updated:
                return self._classify_noop(pk, target, operation)

            reservation = Reservation.objects.get(pk=pk)
            key = CapacityKey.build(reservation.service, reservation.date, reservation.slot)
            if operation == "commit":
                clamped = self.store.commit_unit(key)
            else:
                clamped = self.store.release_unit(key)

            payload = {
                "reservation_id": reservation.id,
                "service": key.service.value,
                "date": key.date,
                "slot": key.slot,
            }
            if clamped:
                logger.warning(
                    f"Reserved counter for {key} was already zero on {operation} of {reservation.id}; clamped"
                )
                uow.record(CounterClamped(operation=operation, **payload))
            uow.record(event_class(**payload))

        logger.info(f"Reservation {pk} {target}")
        return TransitionOutcome.APPLIED

    def _classify_noop(self, pk: uuid.UUID, target: str, operation: str) -> TransitionOutcome:
        current = Reservation.objects.filter(pk=pk).values_list("status", flat=True).first()
        if current is None:
            logger.error(f"Cannot {operation} reservation {pk}: not found")
            return TransitionOutcome.NOT_FOUND
        if current == target:
            logger.info(f"Reservation {pk} already {target}")
            return TransitionOutcome.ALREADY_APPLIED
        if operation == "commit":
            logger.error(f"Cannot commit reservation {pk} in state {current}")
        else:
            logger.info(f"Skipping {operation} of reservation {pk} in state {current}")
        return TransitionOutcome.INVALID_STATE

    # Payment hand-off

    def ensure_payable(self, reservation_id, now: Optional[datetime] = None) -> Reservation:
        """The reservation a payment intent may be created for, or a ReservationError."""
        reservation = self.get(reservation_id)
        if not reservation.is_active:
            raise ReservationNotActive()
        if reservation.has_expired(now or self.clock()):
            raise ReservationExpired()
        return reservation

    def attach_payment_intent(self, reservation_id, payment_intent_id: str) -> bool:
        pk = parse_reservation_id(reservation_id)
        updated = Reservation.objects.filter(pk=pk, status=Reservation.Status.ACTIVE).update(
            pending_payment_intent_id=payment_intent_id,
            updated_at=self.clock(),
        )
        if not updated:
            logger.warning(
                f"Payment intent {payment_intent_id} not attached: reservation {pk} no longer active"
            )
        return bool(updated)
