"""URL routing for payments."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import ReservationPaymentIntentView, stripe_webhook

urlpatterns = [
    path(
        "reservations/<str:reservation_id>/payment-intent",
        ReservationPaymentIntentView.as_view(),
        name="reservation-payment-intent",
    ),
    path("payments/webhook", stripe_webhook, name="payment-webhook"),
]
