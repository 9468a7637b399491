"""Serializers for the public reservation API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.capacity.serializers import ServiceField, SlotField

from .models import Reservation


class ReservationCreateSerializer(serializers.Serializer):
    service = ServiceField()
    date = serializers.DateField()
    slot = SlotField()
    userEmail = serializers.EmailField(source="user_email")
    dogId = serializers.CharField(
        source="dog_id",
        required=False,
        allow_blank=True,
        allow_null=True,
        max_length=64,
    )
    idempotencyKey = serializers.CharField(source="idempotency_key", max_length=128)


class ReservationSerializer(serializers.ModelSerializer):
    """Read-only view of a reservation for staff tooling."""

    slot = SlotField(read_only=True)
    userEmail = serializers.EmailField(source="user_email", read_only=True)
    dogId = serializers.CharField(source="dog_id", read_only=True)
    expiresAt = serializers.DateTimeField(source="expires_at", read_only=True)
    pendingPaymentIntentId = serializers.CharField(source="pending_payment_intent_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Reservation
        fields = [
            "id",
            "service",
            "date",
            "slot",
            "userEmail",
            "dogId",
            "status",
            "expiresAt",
            "pendingPaymentIntentId",
            "createdAt",
        ]
        read_only_fields = ["id", "service", "date", "status"]
