"""
Stripe payment gateway integration over the REST API.

Payment intents are created with form-encoded requests; webhook payloads are
authenticated with the ``Stripe-Signature`` header (HMAC-SHA256 over
``"{timestamp}.{payload}"``).
"""

import hashlib
import hmac
import json
import logging
import time
import uuid

import requests
from django.conf import settings

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


class PaymentGatewayError(DomainError):
    """The gateway could not be reached or rejected the request."""

    code = "PAYMENT_GATEWAY"
    status_code = 502
    default_message = "Payment provider is unavailable. Please try again."


class WebhookSignatureError(Exception):
    """Webhook payload is not signed with our endpoint secret."""


def _flatten(data: dict, prefix: str = "") -> dict:
    """Stripe form encoding: {"metadata": {"a": 1}} -> {"metadata[a]": 1}"""
    flat = {}
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else key
        if isinstance(value, dict):
            flat.update(_flatten(value, name))
        elif value is not None:
            flat[name] = value
    return flat


class StripeGateway:
    """
    Thin client for the endpoints the booking flow needs.

    Without a secret key, or with DEBUG on, intents are emulated locally so
    the reservation flow can run end to end in development.
    """

    def __init__(self, secret_key=None, base_url=None, timeout=None):
        self.secret_key = settings.STRIPE_SECRET_KEY if secret_key is None else secret_key
        self.base_url = base_url or settings.STRIPE_API_BASE_URL
        self.timeout = timeout or settings.STRIPE_TIMEOUT_SECONDS

    @property
    def emulated(self) -> bool:
        return settings.DEBUG or not self.secret_key

    def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: dict,
        idempotency_key: str = None,
    ) -> dict:
        """
        Create a payment intent.

        Returns:
            dict: {"id": ..., "client_secret": ..., "status": ...}
        """
        logger.info(
            f"Creating payment intent for reservation {metadata.get('reservationId')}, "
            f"amount {amount_cents} {currency}"
        )

        if self.emulated:
            logger.warning("Using emulated Stripe API (DEBUG mode or missing secret key)")
            intent_id = f"pi_emulated_{uuid.uuid4().hex[:24]}"
            return {
                "id": intent_id,
                "client_secret": f"{intent_id}_secret_{uuid.uuid4().hex[:16]}",
                "status": "requires_payment_method",
                "amount": amount_cents,
                "currency": currency,
                "metadata": metadata,
            }

        payload = _flatten(
            {
                "amount": amount_cents,
                "currency": currency,
                "automatic_payment_methods": {"enabled": "true"},
                "metadata": metadata,
            }
        )
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        try:
            response = requests.post(
                f"{self.base_url}payment_intents",
                data=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error calling Stripe: {e}")
            raise PaymentGatewayError() from e

        if response.status_code >= 400:
            try:
                error = response.json().get("error", {})
            except ValueError:
                error = {}
            logger.error(
                f"Stripe rejected payment intent ({response.status_code}): "
                f"{error.get('type')} {error.get('message')}"
            )
            raise PaymentGatewayError()

        intent = response.json()
        logger.info(f"Payment intent {intent.get('id')} created")
        return intent


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def verify_webhook_signature(payload: bytes, header: str, secret: str = None, tolerance: int = None, now: float = None) -> dict:
    """
    Check the Stripe-Signature header and return the decoded event.

    Header format: ``t=<unix time>,v1=<hex digest>[,v1=...]``. Any v1 entry
    matching our digest is accepted; timestamps older than ``tolerance``
    seconds are rejected.
    """
    secret = settings.STRIPE_WEBHOOK_SECRET if secret is None else secret
    tolerance = settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS if tolerance is None else tolerance
    if not secret:
        raise WebhookSignatureError("Webhook secret is not configured")
    if not header:
        raise WebhookSignatureError("Missing Stripe-Signature header")

    timestamp = None
    signatures = []
    for item in header.split(","):
        name, _, value = item.strip().partition("=")
        if name == "t":
            timestamp = value
        elif name == "v1":
            signatures.append(value)

    try:
        timestamp = int(timestamp)
    except (TypeError, ValueError):
        raise WebhookSignatureError("Malformed Stripe-Signature header") from None
    if not signatures:
        raise WebhookSignatureError("No v1 signature in header")

    expected = compute_signature(payload, timestamp, secret)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise WebhookSignatureError("Signature mismatch")

    current = time.time() if now is None else now
    if tolerance and abs(current - timestamp) > tolerance:
        raise WebhookSignatureError("Timestamp outside tolerance")

    try:
        return json.loads(payload)
    except ValueError:
        raise WebhookSignatureError("Payload is not valid JSON") from None
