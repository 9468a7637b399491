"""Capacity models: configuration and per-day availability counters."""

from __future__ import annotations

from datetime import date

from django.db import models
from django.utils.translation import gettext_lazy as _

# Sentinel slot for services that are not sliced within a day.
ALL_DAY = "ALL_DAY"


class Service(models.TextChoices):
    """Bookable services. Values are the persisted and public names."""

    DAYCARE = "Daycare", _("Daycare")
    BOARDING_SMALL = "Boarding Small", _("Boarding (small dogs)")
    BOARDING_LARGE = "Boarding Large", _("Boarding (large dogs)")
    TRIAL_DAY = "Trial Day", _("Trial day")

    @classmethod
    def parse(cls, raw) -> "Service":
        """Resolve a client-supplied name, case-insensitively, including legacy aliases."""
        if isinstance(raw, cls):
            return raw
        normalized = " ".join(str(raw or "").split()).lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        alias = SERVICE_ALIASES.get(normalized)
        if alias is None:
            raise ValueError(f"Unknown service: {raw!r}")
        return alias


SERVICE_ALIASES = {
    "boarding": Service.BOARDING_SMALL,
    "trial": Service.TRIAL_DAY,
    "trial:day": Service.TRIAL_DAY,
    "boarding:small": Service.BOARDING_SMALL,
    "boarding:large": Service.BOARDING_LARGE,
}


def normalize_slot(slot: str | None) -> str:
    return (slot or "").strip() or ALL_DAY


def display_slot(slot: str | None) -> str | None:
    return None if not slot or slot == ALL_DAY else slot


class CapacityDefault(models.Model):
    """Baseline capacity for a service, editable by staff."""

    service = models.CharField(max_length=32, choices=Service.choices, primary_key=True)
    capacity = models.PositiveIntegerField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Capacity default")
        verbose_name_plural = _("Capacity defaults")
        ordering = ["service"]

    def __str__(self) -> str:
        return f"{self.service}: {self.capacity}"


class CapacityOverride(models.Model):
    """Capacity for a service/slot over an inclusive date range (e.g. holiday closures)."""

    service = models.CharField(max_length=32, choices=Service.choices)
    date_start = models.DateField()
    date_end = models.DateField()
    slot = models.CharField(max_length=32, default=ALL_DAY)
    capacity = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Capacity override")
        verbose_name_plural = _("Capacity overrides")
        ordering = ["service", "date_start", "slot"]
        constraints = [
            models.UniqueConstraint(
                fields=["service", "date_start", "date_end", "slot"],
                name="capacity_override_unique_range",
            ),
            models.CheckConstraint(
                condition=models.Q(date_end__gte=models.F("date_start")),
                name="capacity_override_valid_range",
            ),
        ]
        indexes = [
            models.Index(fields=["service", "date_start", "date_end"], name="capacity_override_range_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.service} {self.date_start}..{self.date_end} [{self.slot}]: {self.capacity}"

    def covers(self, day: date) -> bool:
        return self.date_start <= day <= self.date_end

    @property
    def span_days(self) -> int:
        return (self.date_end - self.date_start).days + 1


class AvailabilityRecord(models.Model):
    """Capacity counters for one (service, date, slot). The single source of truth for remaining capacity."""

    service = models.CharField(max_length=32, choices=Service.choices)
    date = models.DateField()
    slot = models.CharField(max_length=32, default=ALL_DAY)
    capacity = models.PositiveIntegerField()
    reserved = models.PositiveIntegerField(
        default=0,
        help_text=_("Active holds that are not paid yet."),
    )
    confirmed = models.PositiveIntegerField(
        default=0,
        help_text=_("Paid allocations."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Availability record")
        verbose_name_plural = _("Availability records")
        ordering = ["date", "service", "slot"]
        constraints = [
            models.UniqueConstraint(
                fields=["service", "date", "slot"],
                name="availability_unique_slot",
            ),
        ]
        indexes = [
            models.Index(fields=["service", "date"], name="availability_service_date_idx"),
        ]

    def __str__(self) -> str:
        return (
            f"{self.service} {self.date} [{self.slot}] "
            f"{self.reserved}+{self.confirmed}/{self.capacity}"
        )

    @property
    def occupied(self) -> int:
        return self.reserved + self.confirmed

    @property
    def remaining(self) -> int:
        return max(0, self.capacity - self.reserved - self.confirmed)
