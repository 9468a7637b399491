"""Admin registration for capacity configuration and counters."""

from __future__ import annotations

from django.contrib import admin

from .models import AvailabilityRecord, CapacityDefault, CapacityOverride


@admin.register(CapacityDefault)
class CapacityDefaultAdmin(admin.ModelAdmin):
    list_display = ("service", "capacity", "updated_at")


@admin.register(CapacityOverride)
class CapacityOverrideAdmin(admin.ModelAdmin):
    list_display = ("service", "date_start", "date_end", "slot", "capacity", "updated_at")
    list_filter = ("service", "slot")
    date_hierarchy = "date_start"


@admin.register(AvailabilityRecord)
class AvailabilityRecordAdmin(admin.ModelAdmin):
    list_display = ("service", "date", "slot", "capacity", "reserved", "confirmed", "remaining")
    list_filter = ("service", "slot")
    date_hierarchy = "date"
    # Counters move only through reservations.
    readonly_fields = ("reserved", "confirmed", "created_at", "updated_at")
