"""Reservation lifecycle against the availability counters."""

from __future__ import annotations

from datetime import date, timedelta
from unittest.mock import patch

from django.test import TestCase

from apps.capacity.models import AvailabilityRecord, CapacityDefault, Service
from apps.capacity.services import AvailabilityStore
from apps.reservations.events import CounterClamped, HoldCommitted, HoldPlaced, HoldReleased
from apps.reservations.exceptions import (
    CapacityFull,
    ReservationExpired,
    ReservationNotActive,
    ReservationNotFound,
)
from apps.reservations.models import Reservation
from apps.reservations.services import ReservationManager, TransitionOutcome
from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

from .factories import FakeClock, counters, hold_request, set_capacity

DAY = date(2030, 12, 24)


class ReservationManagerTests(TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.bus = MessageBus()
        self.published: list[DomainEvent] = []
        self.bus.subscribe(DomainEvent, self.published.append)
        self.manager = ReservationManager(clock=self.clock, bus=self.bus)

    def _create(self, **overrides):
        return self.manager.create(**hold_request(day=DAY, **overrides))

    # create

    def test_create_places_hold(self) -> None:
        reservation_id = self._create(slot="", dog_id=None)

        reservation = Reservation.objects.get(pk=reservation_id)
        self.assertEqual(reservation.status, Reservation.Status.ACTIVE)
        self.assertEqual(reservation.slot, "ALL_DAY")
        self.assertEqual(reservation.dog_id, "")
        self.assertEqual(reservation.expires_at, self.clock.now + timedelta(minutes=10))
        self.assertEqual(counters("Daycare", DAY), (10, 1, 0))

    def test_create_honours_custom_ttl(self) -> None:
        manager = ReservationManager(clock=self.clock, ttl=timedelta(seconds=1))

        reservation = Reservation.objects.get(pk=manager.create(**hold_request(day=DAY)))

        self.assertEqual(reservation.expires_at, self.clock.now + timedelta(seconds=1))

    def test_exact_fit_then_full(self) -> None:
        set_capacity("Boarding Large", DAY, 2)

        self._create(service="Boarding Large")
        self._create(service="Boarding Large")
        with self.assertRaises(CapacityFull):
            self._create(service="Boarding Large")

        self.assertEqual(counters("Boarding Large", DAY), (2, 2, 0))
        self.assertEqual(Reservation.objects.count(), 2)

    def test_capacity_cut_applies_once_holds_are_released(self) -> None:
        CapacityDefault.objects.create(service=Service.BOARDING_SMALL, capacity=5)
        holds = [self._create(service="Boarding Small") for _ in range(5)]

        CapacityDefault.objects.filter(service=Service.BOARDING_SMALL).update(capacity=2)
        AvailabilityStore().refresh_matching(services=[Service.BOARDING_SMALL])
        self.assertEqual(counters("Boarding Small", DAY), (5, 5, 0))

        for reservation_id in holds[:3]:
            self.manager.release(reservation_id)
        with self.assertLogs("apps.reservations.services", level="INFO") as logs:
            with self.assertRaises(CapacityFull):
                self._create(service="Boarding Small")
        self.assertIn("Capacity full for Boarding Small/2030-12-24/ALL_DAY (2/2)", logs.output[-1])
        self.assertEqual(counters("Boarding Small", DAY), (2, 2, 0))

        self.manager.release(holds[3])
        self._create(service="Boarding Small")
        with self.assertRaises(CapacityFull):
            self._create(service="Boarding Small")
        self.assertEqual(counters("Boarding Small", DAY), (2, 2, 0))

    def test_zero_capacity_is_full(self) -> None:
        set_capacity("Trial Day", DAY, 0)

        with self.assertRaises(CapacityFull) as ctx:
            self._create(service="Trial")

        self.assertEqual(ctx.exception.code, "FULL")
        self.assertFalse(Reservation.objects.exists())
        self.assertEqual(counters("Trial Day", DAY), (0, 0, 0))

    def test_slots_are_counted_separately(self) -> None:
        set_capacity("Daycare", DAY, 1, slot="AM")

        self._create(slot="AM")
        self._create(slot="PM")
        with self.assertRaises(CapacityFull):
            self._create(slot="AM")

        self.assertEqual(counters("Daycare", DAY, "AM"), (1, 1, 0))
        self.assertEqual(counters("Daycare", DAY, "PM"), (10, 1, 0))

    def test_claim_is_rechecked_in_the_database(self) -> None:
        set_capacity("Trial Day", DAY, 1)
        self._create(service="Trial Day")
        stale = AvailabilityRecord.objects.get(service="Trial Day", date=DAY)
        stale.reserved = 0

        with patch.object(self.manager.store, "lock", return_value=stale):
            with self.assertRaises(CapacityFull):
                self._create(service="Trial Day")

        self.assertEqual(Reservation.objects.count(), 1)
        self.assertEqual(counters("Trial Day", DAY), (1, 1, 0))

    def test_idempotent_create_returns_existing_hold(self) -> None:
        first = self._create(idempotency_key="retry-me")
        second = self._create(idempotency_key="retry-me")

        self.assertEqual(first, second)
        self.assertEqual(Reservation.objects.count(), 1)
        self.assertEqual(counters("Daycare", DAY), (10, 1, 0))

    def test_idempotent_create_survives_full_day(self) -> None:
        set_capacity("Daycare", DAY, 1)
        first = self._create(idempotency_key="retry-me")

        self.assertEqual(self._create(idempotency_key="retry-me"), first)

    def test_key_can_be_reused_once_hold_is_released(self) -> None:
        first = self._create(idempotency_key="retry-me")
        self.manager.release(first)

        second = self._create(idempotency_key="retry-me")

        self.assertNotEqual(first, second)
        self.assertEqual(counters("Daycare", DAY), (10, 1, 0))

    def test_concurrent_create_with_same_key_resolves_to_winner(self) -> None:
        winner = self._create(idempotency_key="race")

        with patch.object(self.manager, "_active_id_for", side_effect=[None, winner]):
            result = self._create(idempotency_key="race")

        self.assertEqual(result, winner)
        self.assertEqual(Reservation.objects.count(), 1)
        self.assertEqual(counters("Daycare", DAY), (10, 1, 0))

    def test_create_publishes_hold_placed_after_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            reservation_id = self._create()

        self.assertEqual([type(event) for event in self.published], [HoldPlaced])
        self.assertEqual(self.published[0].reservation_id, reservation_id)

    def test_full_publishes_nothing(self) -> None:
        set_capacity("Daycare", DAY, 0)

        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(CapacityFull):
                self._create()

        self.assertEqual(self.published, [])

    # commit

    def test_commit_moves_unit_to_confirmed(self) -> None:
        reservation_id = self._create()

        with self.captureOnCommitCallbacks(execute=True):
            outcome = self.manager.commit(reservation_id)

        self.assertIs(outcome, TransitionOutcome.APPLIED)
        reservation = Reservation.objects.get(pk=reservation_id)
        self.assertEqual(reservation.status, Reservation.Status.COMMITTED)
        self.assertEqual(reservation.closed_at, self.clock.now)
        self.assertEqual(counters("Daycare", DAY), (10, 0, 1))
        self.assertIsInstance(self.published[-1], HoldCommitted)

    def test_commit_is_idempotent(self) -> None:
        reservation_id = self._create()
        self.manager.commit(reservation_id)

        outcome = self.manager.commit(str(reservation_id))

        self.assertIs(outcome, TransitionOutcome.ALREADY_APPLIED)
        self.assertEqual(counters("Daycare", DAY), (10, 0, 1))

    def test_commit_unknown_or_malformed_id_is_a_noop(self) -> None:
        with self.assertLogs("apps.reservations.services", level="ERROR"):
            self.assertIs(
                self.manager.commit("5b4d1f3e-0000-4000-8000-000000000000"),
                TransitionOutcome.NOT_FOUND,
            )
        self.assertIs(self.manager.commit("not-a-uuid"), TransitionOutcome.NOT_FOUND)

    def test_commit_after_release_is_rejected_without_raising(self) -> None:
        reservation_id = self._create()
        self.manager.release(reservation_id)

        with self.assertLogs("apps.reservations.services", level="ERROR"):
            outcome = self.manager.commit(reservation_id)

        self.assertIs(outcome, TransitionOutcome.INVALID_STATE)
        self.assertEqual(counters("Daycare", DAY), (10, 0, 0))

    def test_commit_after_expiry_time_but_before_sweep(self) -> None:
        reservation_id = self._create()
        self.clock.advance(minutes=30)

        self.assertIs(self.manager.commit(reservation_id), TransitionOutcome.APPLIED)
        self.assertEqual(counters("Daycare", DAY), (10, 0, 1))

    # release

    def test_release_returns_unit(self) -> None:
        reservation_id = self._create()

        with self.captureOnCommitCallbacks(execute=True):
            outcome = self.manager.release(reservation_id)

        self.assertIs(outcome, TransitionOutcome.APPLIED)
        self.assertEqual(Reservation.objects.get(pk=reservation_id).status, Reservation.Status.RELEASED)
        self.assertEqual(counters("Daycare", DAY), (10, 0, 0))
        self.assertIsInstance(self.published[-1], HoldReleased)

    def test_release_is_idempotent(self) -> None:
        reservation_id = self._create()
        self.manager.release(reservation_id)

        self.assertIs(self.manager.release(reservation_id), TransitionOutcome.ALREADY_APPLIED)
        self.assertEqual(counters("Daycare", DAY), (10, 0, 0))

    def test_release_after_commit_is_a_noop(self) -> None:
        reservation_id = self._create()
        self.manager.commit(reservation_id)

        self.assertIs(self.manager.release(reservation_id), TransitionOutcome.INVALID_STATE)
        self.assertEqual(Reservation.objects.get(pk=reservation_id).status, Reservation.Status.COMMITTED)
        self.assertEqual(counters("Daycare", DAY), (10, 0, 1))

    def test_release_with_zero_reserved_is_clamped_and_reported(self) -> None:
        reservation_id = self._create()
        AvailabilityRecord.objects.filter(service="Daycare", date=DAY).update(reserved=0)

        with self.captureOnCommitCallbacks(execute=True):
            with self.assertLogs("apps.reservations.services", level="WARNING") as logs:
                outcome = self.manager.release(reservation_id)

        self.assertIs(outcome, TransitionOutcome.APPLIED)
        self.assertEqual(counters("Daycare", DAY), (10, 0, 0))
        self.assertTrue(any("clamped" in line for line in logs.output))
        clamps = [event for event in self.published if isinstance(event, CounterClamped)]
        self.assertEqual(len(clamps), 1)
        self.assertEqual(clamps[0].operation, "release")

    # expire

    def test_expire_only_after_deadline(self) -> None:
        reservation_id = self._create()

        self.assertIs(self.manager.expire(reservation_id), TransitionOutcome.INVALID_STATE)
        self.clock.advance(minutes=10, seconds=1)
        self.assertIs(self.manager.expire(reservation_id), TransitionOutcome.APPLIED)
        self.assertIs(self.manager.expire(reservation_id), TransitionOutcome.ALREADY_APPLIED)

        self.assertEqual(Reservation.objects.get(pk=reservation_id).status, Reservation.Status.EXPIRED)
        self.assertEqual(counters("Daycare", DAY), (10, 0, 0))

    def test_expired_hold_ids(self) -> None:
        early = self._create()
        self.clock.advance(minutes=5)
        late = self._create()

        self.assertEqual(self.manager.expired_hold_ids(self.clock.now), [])
        self.assertEqual(self.manager.expired_hold_ids(self.clock.advance(minutes=6)), [early])
        self.assertEqual(self.manager.expired_hold_ids(self.clock.advance(minutes=5)), [early, late])

    # queries and payment hand-off

    def test_availability_reports_remaining(self) -> None:
        set_capacity("Daycare", DAY, 3)
        committed = self._create()
        self._create()
        self.manager.commit(committed)

        record = self.manager.availability("daycare", DAY)

        self.assertEqual((record.capacity, record.reserved, record.confirmed, record.remaining), (3, 1, 1, 1))

    def test_ensure_payable(self) -> None:
        reservation_id = self._create()
        self.assertEqual(self.manager.ensure_payable(reservation_id).pk, reservation_id)

        with self.assertRaises(ReservationNotFound):
            self.manager.ensure_payable("missing")

        self.clock.advance(minutes=11)
        with self.assertRaises(ReservationExpired):
            self.manager.ensure_payable(reservation_id)

        self.manager.release(reservation_id)
        with self.assertRaises(ReservationNotActive):
            self.manager.ensure_payable(reservation_id)

    def test_hold_is_payable_until_the_sweeper_may_expire_it(self) -> None:
        reservation_id = self._create()
        deadline = Reservation.objects.get(pk=reservation_id).expires_at

        self.assertEqual(self.manager.ensure_payable(reservation_id, now=deadline).pk, reservation_id)
        self.assertEqual(self.manager.expired_hold_ids(deadline), [])
        self.assertIs(self.manager.expire(reservation_id, now=deadline), TransitionOutcome.INVALID_STATE)

        just_after = deadline + timedelta(microseconds=1)
        with self.assertRaises(ReservationExpired):
            self.manager.ensure_payable(reservation_id, now=just_after)
        self.assertEqual(self.manager.expired_hold_ids(just_after), [reservation_id])

    def test_attach_payment_intent_only_while_active(self) -> None:
        reservation_id = self._create()

        self.assertTrue(self.manager.attach_payment_intent(reservation_id, "pi_123"))
        self.assertEqual(Reservation.objects.get(pk=reservation_id).pending_payment_intent_id, "pi_123")

        self.manager.release(reservation_id)
        self.assertFalse(self.manager.attach_payment_intent(reservation_id, "pi_456"))
