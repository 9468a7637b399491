"""Payment API views and the gateway webhook."""

from __future__ import annotations

import logging

from django.http import JsonResponse  # type: ignore
from django.views.decorators.csrf import csrf_exempt  # type: ignore
from django.views.decorators.http import require_POST  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .gateway import WebhookSignatureError, verify_webhook_signature
from .serializers import PaymentIntentRequestSerializer
from .services import create_payment_intent, handle_webhook_event

logger = logging.getLogger(__name__)


class ReservationPaymentIntentView(APIView):
    """Start payment for a held reservation."""

    permission_classes = [permissions.AllowAny]

    def post(self, request, reservation_id):  # type: ignore
        serializer = PaymentIntentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = create_payment_intent(
            reservation_id,
            data["amount_cents"],
            data["currency"],
            booking_id=data.get("booking_id"),
        )
        return Response(result, status=status.HTTP_200_OK)


@csrf_exempt
@require_POST
def stripe_webhook(request):
    """
    Gateway webhook

    Acknowledges every correctly signed event with 200, including events for
    unknown or already finished reservations, so the gateway does not retry
    them.
    """
    try:
        event = verify_webhook_signature(request.body, request.headers.get("Stripe-Signature", ""))
    except WebhookSignatureError as e:
        logger.error(f"Rejected webhook: {e}")
        return JsonResponse({"error": "INVALID_SIGNATURE"}, status=400)

    outcome = handle_webhook_event(event)
    return JsonResponse({"received": True, "outcome": outcome})
