"""Helpers shared by the reservation tests."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone as dt_timezone

from apps.capacity.models import AvailabilityRecord, CapacityOverride, Service, normalize_slot

T0 = datetime(2030, 12, 1, 9, 0, tzinfo=dt_timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def set_capacity(service, day: date, capacity: int, slot=None) -> CapacityOverride:
    return CapacityOverride.objects.create(
        service=Service.parse(service),
        date_start=day,
        date_end=day,
        slot=normalize_slot(slot),
        capacity=capacity,
    )


def counters(service, day: date, slot=None) -> tuple[int, int, int]:
    record = AvailabilityRecord.objects.get(
        service=Service.parse(service),
        date=day,
        slot=normalize_slot(slot),
    )
    return record.capacity, record.reserved, record.confirmed


def hold_request(service="Daycare", day=date(2030, 12, 24), **overrides) -> dict:
    payload = {
        "service": service,
        "date": day,
        "user_email": "owner@example.com",
        "dog_id": "dog-1",
        "idempotency_key": uuid.uuid4().hex,
    }
    payload.update(overrides)
    return payload
