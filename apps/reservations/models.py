"""Reservation model: a soft hold on one unit of capacity."""

from __future__ import annotations

import uuid
from datetime import datetime

from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.capacity.models import ALL_DAY, Service


class ReservationQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=Reservation.Status.ACTIVE)

    def expired(self, now: datetime):
        """Active holds whose expiry has passed."""
        return self.active().filter(expires_at__lt=now)


class Reservation(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        COMMITTED = "committed", _("Committed")
        RELEASED = "released", _("Released")
        EXPIRED = "expired", _("Expired")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    service = models.CharField(max_length=32, choices=Service.choices)
    date = models.DateField()
    slot = models.CharField(max_length=32, default=ALL_DAY)
    user_email = models.EmailField()
    dog_id = models.CharField(max_length=64, blank=True, default="")
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    expires_at = models.DateTimeField()
    idempotency_key = models.CharField(max_length=128)
    pending_payment_intent_id = models.CharField(max_length=255, blank=True, default="")
    closed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["idempotency_key"],
                condition=models.Q(status="active"),
                name="reservation_active_idempotency_key",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "expires_at"], name="reservation_status_expiry_idx"),
            models.Index(fields=["service", "date"], name="reservation_service_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.id} {self.service} {self.date} [{self.status}]"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    def has_expired(self, now: datetime) -> bool:
        return self.expires_at < now
