"""Staff API for capacity configuration."""

from __future__ import annotations

import logging

from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .filters import CapacityOverrideFilter
from .models import CapacityDefault, CapacityOverride, normalize_slot
from .serializers import (
    CapacityDefaultsSerializer,
    CapacityOverrideSerializer,
    CapacityResetSerializer,
    OverviewQuerySerializer,
)
from .services import AvailabilityStore, CapacityResolver

logger = logging.getLogger(__name__)


class CapacityConfigView(APIView):
    """Defaults (with fallbacks filled in) and every override."""

    permission_classes = [permissions.IsAdminUser]

    def get(self, request):  # type: ignore
        overrides = CapacityOverride.objects.all()
        return Response(
            {
                "defaults": CapacityResolver().defaults(),
                "overrides": CapacityOverrideSerializer(overrides, many=True).data,
            }
        )


class CapacityDefaultsView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def put(self, request):  # type: ignore
        serializer = CapacityDefaultsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        changed = serializer.validated_data["defaults"]

        with transaction.atomic():
            for service, capacity in changed.items():
                CapacityDefault.objects.update_or_create(
                    service=service,
                    defaults={"capacity": capacity},
                )
        summary = ", ".join(f"{s.value}={c}" for s, c in changed.items())
        logger.info(f"Capacity defaults updated: {summary}")

        store = AvailabilityStore()
        store.refresh_matching(services=changed.keys(), date_from=timezone.localdate())
        return Response({"defaults": store.resolver.defaults()}, status=status.HTTP_200_OK)


class CapacityOverrideViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Date-ranged overrides. POST upserts on (service, dateStart, dateEnd, slot)."""

    queryset = CapacityOverride.objects.all()
    serializer_class = CapacityOverrideSerializer
    permission_classes = [permissions.IsAdminUser]
    filterset_class = CapacityOverrideFilter

    def perform_create(self, serializer):  # type: ignore
        override = serializer.save()
        logger.info(f"Capacity override saved: {override}")
        self._refresh(override)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        return Response(serializer.data, status=status.HTTP_200_OK)

    def perform_destroy(self, instance):  # type: ignore
        logger.info(f"Capacity override deleted: {instance}")
        instance.delete()
        self._refresh(instance)

    def _refresh(self, override: CapacityOverride) -> None:
        AvailabilityStore().refresh_matching(
            services=[override.service],
            date_from=override.date_start,
            date_to=override.date_end,
            slot=override.slot,
        )


class CapacityResetView(APIView):
    """Drops overrides, all of them or only those of one service and/or slot."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request):  # type: ignore
        serializer = CapacityResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = serializer.validated_data.get("service")
        slot = serializer.validated_data.get("slot")

        overrides = CapacityOverride.objects.all()
        if service is not None:
            overrides = overrides.filter(service=service)
        if slot is not None:
            overrides = overrides.filter(slot=normalize_slot(slot))
        deleted, _ = overrides.delete()
        logger.info(f"Capacity overrides reset: {deleted} deleted (service={service}, slot={slot})")

        AvailabilityStore().refresh_matching(
            services=[service] if service is not None else None,
            date_from=timezone.localdate(),
            slot=slot,
        )
        return Response(
            {"message": "Capacity reset to defaults", "deleted": deleted},
            status=status.HTTP_200_OK,
        )


class CapacityOverviewView(APIView):
    """Per-service figures and totals for one day (today by default)."""

    permission_classes = [permissions.IsAdminUser]

    def get(self, request):  # type: ignore
        serializer = OverviewQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        day = serializer.validated_data.get("date") or timezone.localdate()
        return Response(AvailabilityStore().overview(day))
