"""
Parallel hold placement against a real database.

SQLite has no row locks and serializes writers on the whole file, so these
tests are marked ``postgres`` and skipped elsewhere. Run them with

    DJANGO_SETTINGS_MODULE=config.settings.test_postgres pytest -m postgres

The conditional counter update is covered on every backend in test_manager.
"""

from __future__ import annotations

import threading
import unittest
from datetime import date

import pytest
from django.db import connection
from django.test import TransactionTestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.reservations.exceptions import CapacityFull
from apps.reservations.models import Reservation
from apps.reservations.services import ReservationManager

from .factories import counters, hold_request, set_capacity

DAY = date(2030, 12, 24)


@pytest.mark.postgres
@unittest.skipUnless(connection.vendor == "postgresql", "row-level locking needs PostgreSQL")
class ParallelCreateTests(TransactionTestCase):
    def _race(self, requests: list[dict]) -> tuple[list, list]:
        barrier = threading.Barrier(len(requests))
        won, full, errors = [], [], []
        lock = threading.Lock()

        def attempt(payload):
            try:
                barrier.wait()
                reservation_id = ReservationManager().create(**payload)
                with lock:
                    won.append(reservation_id)
            except CapacityFull:
                with lock:
                    full.append(payload["idempotency_key"])
            except Exception as exc:  # noqa: BLE001
                with lock:
                    errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=attempt, args=(payload,)) for payload in requests]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        self.assertEqual(errors, [])
        return won, full

    def test_never_oversells(self) -> None:
        set_capacity("Boarding Small", DAY, 3)

        won, full = self._race([hold_request(service="Boarding Small", day=DAY) for _ in range(12)])

        self.assertEqual(len(won), 3)
        self.assertEqual(len(full), 9)
        self.assertEqual(counters("Boarding Small", DAY), (3, 3, 0))
        self.assertEqual(Reservation.objects.active().count(), 3)

    def test_last_unit_race(self) -> None:
        set_capacity("Trial Day", date(2025, 12, 24), 1)

        won, full = self._race(
            [hold_request(service="Trial Day", day=date(2025, 12, 24)) for _ in range(2)]
        )

        self.assertEqual((len(won), len(full)), (1, 1))

    def test_same_key_retries_share_one_hold(self) -> None:
        won, full = self._race([hold_request(day=DAY, idempotency_key="double-click") for _ in range(5)])

        self.assertEqual(full, [])
        self.assertEqual(len(set(won)), 1)
        self.assertEqual(counters("Daycare", DAY), (10, 1, 0))

    def test_parallel_http_requests_get_200_or_409(self) -> None:
        set_capacity("Daycare", DAY, 2)
        url = reverse("reservation-create")
        barrier = threading.Barrier(5)
        codes, errors = [], []
        lock = threading.Lock()

        def post(index):
            try:
                barrier.wait()
                response = APIClient().post(
                    url,
                    {
                        "service": "Daycare",
                        "date": DAY.isoformat(),
                        "userEmail": f"owner{index}@example.com",
                        "idempotencyKey": f"checkout-{index}",
                    },
                    format="json",
                )
                with lock:
                    codes.append(response.status_code)
            except Exception as exc:  # noqa: BLE001
                with lock:
                    errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=post, args=(index,)) for index in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        self.assertEqual(errors, [])
        self.assertEqual(sorted(codes), [status.HTTP_200_OK] * 2 + [status.HTTP_409_CONFLICT] * 3)
        self.assertEqual(counters("Daycare", DAY), (2, 2, 0))
