"""Admin registration for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "service",
        "date",
        "slot",
        "user_email",
        "status",
        "expires_at",
        "created_at",
    )
    list_filter = ("status", "service", "date")
    search_fields = ("id", "user_email", "idempotency_key", "pending_payment_intent_id")
    # State changes go through ReservationManager so counters stay in step.
    readonly_fields = (
        "id",
        "service",
        "date",
        "slot",
        "status",
        "expires_at",
        "idempotency_key",
        "pending_payment_intent_id",
        "closed_at",
        "created_at",
        "updated_at",
    )
