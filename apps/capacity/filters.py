"""FilterSet definitions for staff capacity listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import CapacityOverride, Service, normalize_slot


class CapacityOverrideFilter(django_filters.FilterSet):
    """Overrides by service, slot, or by a date they cover."""

    service = django_filters.CharFilter(method="filter_service")
    slot = django_filters.CharFilter(method="filter_slot")
    date = django_filters.DateFilter(method="filter_date")
    date_from = django_filters.DateFilter(field_name="date_end", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="date_start", lookup_expr="lte")

    class Meta:
        model = CapacityOverride
        fields = ["service", "slot"]

    def filter_service(self, queryset, name, value):  # type: ignore
        try:
            service = Service.parse(value)
        except ValueError:
            return queryset.none()
        return queryset.filter(service=service)

    def filter_slot(self, queryset, name, value):  # type: ignore
        return queryset.filter(slot=normalize_slot(value))

    def filter_date(self, queryset, name, value):  # type: ignore
        return queryset.filter(date_start__lte=value, date_end__gte=value)
