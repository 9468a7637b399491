"""Capacity resolution and the availability counters store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import F, Value  # type: ignore
from django.db.models.functions import Greatest  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from .models import (
    ALL_DAY,
    AvailabilityRecord,
    CapacityDefault,
    CapacityOverride,
    Service,
    display_slot,
    normalize_slot,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacityKey:
    """Identifies one availability record."""

    service: Service
    date: date
    slot: str = ALL_DAY

    @classmethod
    def build(cls, service, day: date, slot: Optional[str] = None) -> "CapacityKey":
        return cls(Service.parse(service), day, normalize_slot(slot))

    def lookup(self) -> dict:
        return {"service": self.service.value, "date": self.date, "slot": self.slot}

    def __str__(self) -> str:
        return f"{self.service.value}/{self.date.isoformat()}/{self.slot}"


class CapacityResolver:
    """
    Turns configuration into an effective capacity.

    Precedence is strict: the most specific override whose range contains the
    date (exact slot match), then the per-service default, then the fallback
    from settings.CAPACITY_FALLBACKS.
    """

    def override_for(self, service: Service, day: date, slot: str = ALL_DAY) -> Optional[CapacityOverride]:
        candidates = list(
            CapacityOverride.objects.filter(
                service=service,
                slot=normalize_slot(slot),
                date_start__lte=day,
                date_end__gte=day,
            )
        )
        if not candidates:
            return None
        # Narrowest range first; ties go to the most recently started, then newest row.
        return min(
            candidates,
            key=lambda item: (item.span_days, -item.date_start.toordinal(), -item.pk),
        )

    def default_for(self, service: Service) -> Optional[int]:
        return (
            CapacityDefault.objects.filter(service=service)
            .values_list("capacity", flat=True)
            .first()
        )

    def fallback(self, service: Service) -> int:
        return int(settings.CAPACITY_FALLBACKS[Service(service).value])

    def effective_capacity(self, service, day: date, slot: Optional[str] = None) -> int:
        service = Service.parse(service)
        override = self.override_for(service, day, normalize_slot(slot))
        if override is not None:
            return override.capacity
        default = self.default_for(service)
        if default is not None:
            return default
        return self.fallback(service)

    def defaults(self) -> dict[str, int]:
        """Baseline capacity for every service, fallbacks filled in."""
        configured = dict(CapacityDefault.objects.values_list("service", "capacity"))
        return {
            service.value: configured.get(service.value, self.fallback(service))
            for service in Service
        }


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


class AvailabilityStore:
    """
    Per (service, date, slot) counters.

    Records are materialized lazily with the capacity resolved at that
    moment. Counter changes are conditional UPDATE statements, so a claim
    only lands while capacity > reserved + confirmed holds in the database,
    whatever snapshot the caller looked at.
    """

    def __init__(self, resolver: Optional[CapacityResolver] = None):
        self.resolver = resolver or CapacityResolver()

    def get_or_create(self, key: CapacityKey) -> AvailabilityRecord:
        record = AvailabilityRecord.objects.filter(**key.lookup()).first()
        if record is not None:
            return record
        record, created = AvailabilityRecord.objects.get_or_create(
            **key.lookup(),
            defaults={
                "capacity": lambda: self.resolver.effective_capacity(key.service, key.date, key.slot),
            },
        )
        if created:
            logger.info(f"Materialized availability {key} with capacity {record.capacity}")
        return record

    def snapshot(self, key: CapacityKey, refresh: bool = True) -> AvailabilityRecord:
        """Current counters without an exclusive lock."""
        record = self.get_or_create(key)
        if refresh:
            self.refresh_capacity(record)
        return record

    def lock(self, key: CapacityKey) -> AvailabilityRecord:
        """Row-lock the record for the rest of the current transaction."""
        record = self.get_or_create(key)
        return _lock_queryset_if_possible(AvailabilityRecord.objects.filter(pk=record.pk)).get()

    def try_claim(self, record: AvailabilityRecord) -> bool:
        """Increment reserved only if a unit is still free."""
        updated = AvailabilityRecord.objects.filter(
            pk=record.pk,
            capacity__gt=F("reserved") + F("confirmed"),
        ).update(reserved=F("reserved") + 1, updated_at=timezone.now())
        return updated == 1

    def commit_unit(self, key: CapacityKey) -> bool:
        """
        Move one unit from reserved to confirmed.

        Returns True when reserved was already zero and the decrement was
        clamped; confirmed is incremented either way.
        """
        now = timezone.now()
        queryset = AvailabilityRecord.objects.filter(**key.lookup())
        if queryset.filter(reserved__gt=0).update(
            reserved=F("reserved") - 1,
            confirmed=F("confirmed") + 1,
            updated_at=now,
        ):
            return False
        queryset.update(confirmed=F("confirmed") + 1, updated_at=now)
        return True

    def release_unit(self, key: CapacityKey) -> bool:
        """Return one reserved unit. Returns True when the decrement was clamped at zero."""
        updated = AvailabilityRecord.objects.filter(**key.lookup(), reserved__gt=0).update(
            reserved=F("reserved") - 1,
            updated_at=timezone.now(),
        )
        return updated == 0

    def refresh_capacity(self, record: AvailabilityRecord) -> AvailabilityRecord:
        """Re-apply the effective capacity, never dropping below current occupancy."""
        effective = self.resolver.effective_capacity(record.service, record.date, record.slot)
        if effective == record.capacity:
            return record
        AvailabilityRecord.objects.filter(pk=record.pk).update(
            capacity=Greatest(Value(effective), F("reserved") + F("confirmed")),
            updated_at=timezone.now(),
        )
        record.refresh_from_db(fields=["capacity", "reserved", "confirmed", "updated_at"])
        return record

    def refresh_matching(
        self,
        *,
        services: Optional[Iterable[Service]] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        slot: Optional[str] = None,
    ) -> int:
        """Refresh capacity on existing records after a configuration change."""
        queryset = AvailabilityRecord.objects.all()
        if services is not None:
            queryset = queryset.filter(service__in=[Service(s).value for s in services])
        if date_from is not None:
            queryset = queryset.filter(date__gte=date_from)
        if date_to is not None:
            queryset = queryset.filter(date__lte=date_to)
        if slot is not None:
            queryset = queryset.filter(slot=normalize_slot(slot))

        refreshed = 0
        for record in queryset.iterator():
            before = record.capacity
            if self.refresh_capacity(record).capacity != before:
                refreshed += 1
        if refreshed:
            logger.info(f"Refreshed capacity on {refreshed} availability records")
        return refreshed

    def overview(self, day: date) -> dict:
        """All-day figures for every service on one date, with totals."""
        services = []
        totals = {"capacity": 0, "reserved": 0, "confirmed": 0, "remaining": 0}
        for service in Service:
            record = self.snapshot(CapacityKey(service, day))
            figures = {
                "capacity": record.capacity,
                "reserved": record.reserved,
                "confirmed": record.confirmed,
                "remaining": record.remaining,
            }
            for name, value in figures.items():
                totals[name] += value
            services.append({"service": service.value, **figures})

        capacity = totals["capacity"]
        occupied = totals["reserved"] + totals["confirmed"]
        utilisation = round(occupied * 100 / capacity, 1) if capacity else 0.0
        return {
            "date": day.isoformat(),
            "services": services,
            "totals": {**totals, "utilisationPercent": utilisation},
        }


def availability_payload(record: AvailabilityRecord) -> dict:
    """Public representation of an availability record."""
    return {
        "service": record.service,
        "date": record.date.isoformat(),
        "slot": display_slot(record.slot),
        "capacity": record.capacity,
        "reserved": record.reserved,
        "confirmed": record.confirmed,
        "remaining": record.remaining,
    }
