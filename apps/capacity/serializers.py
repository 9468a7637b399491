"""Serializers for capacity configuration and availability queries."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore
from rest_framework.fields import empty  # type: ignore

from .models import CapacityOverride, Service, display_slot, normalize_slot


class ServiceField(serializers.Field):
    """Accepts service names case-insensitively, including legacy aliases."""

    default_error_messages = {
        "invalid": "Unknown service {value!r}. Expected one of: " + ", ".join(Service.values) + ".",
    }

    def to_internal_value(self, data):  # type: ignore
        try:
            return Service.parse(data)
        except ValueError:
            self.fail("invalid", value=data)

    def to_representation(self, value):  # type: ignore
        return Service(value).value


class SlotField(serializers.CharField):
    """Optional sub-day window; blank or missing means the whole day."""

    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("allow_blank", True)
        kwargs.setdefault("allow_null", True)
        kwargs.setdefault("max_length", 32)
        super().__init__(**kwargs)

    def run_validation(self, data=empty):  # type: ignore
        return normalize_slot(super().run_validation(data))

    def to_representation(self, value):  # type: ignore
        return display_slot(value)


class AvailabilityQuerySerializer(serializers.Serializer):
    service = ServiceField()
    date = serializers.DateField()
    slot = SlotField()


class CapacityOverrideSerializer(serializers.ModelSerializer):
    """Staff-managed override. Creating an existing (service, range, slot) updates its capacity."""

    service = ServiceField()
    dateStart = serializers.DateField(source="date_start")
    dateEnd = serializers.DateField(source="date_end", required=False)
    slot = SlotField()
    capacity = serializers.IntegerField(min_value=0)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = CapacityOverride
        fields = [
            "id",
            "service",
            "dateStart",
            "dateEnd",
            "slot",
            "capacity",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = ["id", "createdAt", "updatedAt"]
        # Upsert semantics: uniqueness is resolved in create().
        validators = []

    def validate(self, attrs):  # type: ignore
        attrs.setdefault("date_end", attrs["date_start"])
        attrs["slot"] = normalize_slot(attrs.get("slot"))
        if attrs["date_end"] < attrs["date_start"]:
            raise serializers.ValidationError({"dateEnd": "dateEnd must not be before dateStart."})
        return attrs

    def create(self, validated_data):  # type: ignore
        override, _ = CapacityOverride.objects.update_or_create(
            service=validated_data["service"],
            date_start=validated_data["date_start"],
            date_end=validated_data["date_end"],
            slot=validated_data["slot"],
            defaults={"capacity": validated_data["capacity"]},
        )
        return override


class CapacityDefaultsSerializer(serializers.Serializer):
    """{"defaults": {"Daycare": 12, "Boarding": 6}}; services not named are left unchanged."""

    defaults = serializers.DictField(
        child=serializers.IntegerField(min_value=0),
        allow_empty=False,
    )

    def validate_defaults(self, value):  # type: ignore
        parsed: dict[Service, int] = {}
        unknown = []
        for name, capacity in value.items():
            try:
                parsed[Service.parse(name)] = capacity
            except ValueError:
                unknown.append(name)
        if unknown:
            raise serializers.ValidationError(f"Unknown services: {', '.join(unknown)}.")
        return parsed


class CapacityResetSerializer(serializers.Serializer):
    service = ServiceField(required=False)
    slot = serializers.CharField(required=False, allow_blank=True, max_length=32)


class OverviewQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
