"""Serializers for payment endpoints."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from rest_framework import serializers  # type: ignore


class PaymentIntentRequestSerializer(serializers.Serializer):
    amountCents = serializers.IntegerField(source="amount_cents", min_value=1)
    currency = serializers.RegexField(
        r"^[A-Za-z]{3}$",
        required=False,
        error_messages={"invalid": "currency must be a three-letter ISO code."},
    )
    bookingId = serializers.CharField(
        source="booking_id",
        required=False,
        allow_blank=True,
        allow_null=True,
        max_length=128,
    )

    def validate(self, attrs):  # type: ignore
        attrs["currency"] = (attrs.get("currency") or settings.PAYMENT_DEFAULT_CURRENCY).lower()
        return attrs
