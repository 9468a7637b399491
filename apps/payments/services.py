"""Payment flow around reservations: intent creation and webhook dispatch."""

from __future__ import annotations

import logging
from typing import Optional

from apps.capacity.models import display_slot
from apps.reservations.services import ReservationManager

from .gateway import StripeGateway

logger = logging.getLogger(__name__)

COMMIT_EVENT_TYPES = frozenset({"payment_intent.succeeded", "checkout.session.completed"})
RELEASE_EVENT_TYPES = frozenset({"payment_intent.canceled"})


def create_payment_intent(
    reservation_id,
    amount_cents: int,
    currency: str,
    booking_id: Optional[str] = None,
    *,
    manager: Optional[ReservationManager] = None,
    gateway: Optional[StripeGateway] = None,
) -> dict:
    """
    Create a payment intent for an active, unexpired hold.

    The gateway call happens outside any database transaction; the intent id
    is stored on the reservation afterwards.
    """
    manager = manager or ReservationManager()
    gateway = gateway or StripeGateway()

    reservation = manager.ensure_payable(reservation_id)
    metadata = {
        "reservationId": str(reservation.id),
        "bookingId": booking_id or "",
        "service": reservation.service,
        "date": reservation.date.isoformat(),
        "slot": display_slot(reservation.slot) or "",
    }
    currency = currency.lower()
    intent = gateway.create_payment_intent(
        amount_cents,
        currency,
        metadata,
        idempotency_key=f"reservation-{reservation.id}-{amount_cents}-{currency}",
    )
    manager.attach_payment_intent(reservation.id, intent["id"])
    return {"clientSecret": intent["client_secret"], "paymentIntentId": intent["id"]}


def handle_webhook_event(event: dict, manager: Optional[ReservationManager] = None) -> str:
    """
    Apply a verified gateway event to its reservation.

    Returns the transition outcome, or "ignored" for event types that do
    not move a reservation. Failed payments leave the hold in place so the
    customer can retry until it expires.
    """
    event_type = event.get("type", "")
    data_object = (event.get("data") or {}).get("object") or {}
    reservation_id = (data_object.get("metadata") or {}).get("reservationId")

    if event_type not in COMMIT_EVENT_TYPES and event_type not in RELEASE_EVENT_TYPES:
        logger.info(f"Ignoring webhook event {event.get('id')} of type {event_type}")
        return "ignored"

    if not reservation_id:
        logger.error(f"Webhook event {event.get('id')} ({event_type}) carries no reservationId")
        return "ignored"

    manager = manager or ReservationManager()
    if event_type in COMMIT_EVENT_TYPES:
        outcome = manager.commit(reservation_id)
    else:
        outcome = manager.release(reservation_id)

    logger.info(f"Webhook {event_type} for reservation {reservation_id}: {outcome.value}")
    return outcome.value
