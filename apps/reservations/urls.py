"""URL routing for availability and reservations."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import (
    AvailabilityView,
    ReservationCreateView,
    ReservationDetailView,
    ReservationReleaseView,
)

urlpatterns = [
    path("availability", AvailabilityView.as_view(), name="availability"),
    path("reservations", ReservationCreateView.as_view(), name="reservation-create"),
    path("reservations/<str:reservation_id>", ReservationDetailView.as_view(), name="reservation-detail"),
    path(
        "reservations/<str:reservation_id>/release",
        ReservationReleaseView.as_view(),
        name="reservation-release",
    ),
]
