"""API views for availability and reservations."""

from __future__ import annotations

from rest_framework import permissions, status  # type: ignore
from rest_framework.generics import RetrieveAPIView  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.capacity.serializers import AvailabilityQuerySerializer
from apps.capacity.services import availability_payload

from .exceptions import ReservationNotFound
from .serializers import ReservationCreateSerializer, ReservationSerializer
from .services import ReservationManager, TransitionOutcome


class AvailabilityView(APIView):
    """Counters for one service/date/slot; the record is created on first read."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        serializer = AvailabilityQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        record = ReservationManager().availability(data["service"], data["date"], data.get("slot"))
        return Response(availability_payload(record))


class ReservationCreateView(APIView):
    """Place a soft hold. 409 FULL when the day is booked out."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = ReservationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        reservation_id = ReservationManager().create(
            service=data["service"],
            date=data["date"],
            slot=data.get("slot"),
            user_email=data["user_email"],
            dog_id=data.get("dog_id"),
            idempotency_key=data["idempotency_key"],
        )
        return Response({"reservationId": str(reservation_id)}, status=status.HTTP_200_OK)


class ReservationReleaseView(APIView):
    """Give the held unit back. Releasing twice, or after payment, is a no-op."""

    permission_classes = [permissions.AllowAny]

    def post(self, request, reservation_id):  # type: ignore
        outcome = ReservationManager().release(reservation_id)
        if outcome is TransitionOutcome.NOT_FOUND:
            raise ReservationNotFound()
        if outcome is TransitionOutcome.APPLIED:
            message = "Reservation released"
        else:
            message = "Reservation already processed"
        return Response({"message": message, "outcome": outcome.value}, status=status.HTTP_200_OK)


class ReservationDetailView(RetrieveAPIView):
    permission_classes = [permissions.IsAdminUser]
    serializer_class = ReservationSerializer

    def get_object(self):  # type: ignore
        return ReservationManager().get(self.kwargs["reservation_id"])
