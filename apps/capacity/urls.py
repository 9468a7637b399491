"""URL routing for the staff capacity API."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import (
    CapacityConfigView,
    CapacityDefaultsView,
    CapacityOverrideViewSet,
    CapacityOverviewView,
    CapacityResetView,
)

router = SimpleRouter(trailing_slash=False)
router.register(r"overrides", CapacityOverrideViewSet, basename="capacity-override")

urlpatterns = [
    path("staff/capacity", CapacityConfigView.as_view(), name="capacity-config"),
    path("staff/capacity/defaults", CapacityDefaultsView.as_view(), name="capacity-defaults"),
    path("staff/capacity/reset", CapacityResetView.as_view(), name="capacity-reset"),
    path("staff/capacity/overview", CapacityOverviewView.as_view(), name="capacity-overview"),
    path("staff/capacity/", include(router.urls)),
]
