"""Payment provider seam and its Stripe and local sandbox implementations."""
from __future__ import annotations

import hashlib
import hmac
import json
import logging
from threading import Lock
from typing import Any, Dict, Mapping, Optional, Protocol
from uuid import uuid4

import stripe

from .models import Charge, PaymentIntentSession, WebhookEvent

logger = logging.getLogger("payments")


def _as_dict(obj: object) -> Dict[str, Any]:
    """Return a plain recursive dict for a Stripe API object."""

    if hasattr(obj, "to_dict"):
        return obj.to_dict(recursive=True)
    return dict(obj)  # type: ignore[call-overload]


class PaymentProviderError(RuntimeError):
    """Raised when the payment provider cannot complete a request."""


class WebhookVerificationError(ValueError):
    """Raised when a webhook payload or its signature cannot be trusted."""


class PaymentProvider(Protocol):
    """External payment processor integration."""

    def create_intent(self, *, amount: int, currency: str, metadata: Mapping[str, str]) -> PaymentIntentSession:
        ...

    def retrieve_charge(self, intent_id: str) -> Charge:
        ...

    def construct_event(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        ...


class StripePaymentProvider(PaymentProvider):
    """Stripe implementation of :class:`PaymentProvider`."""

    def __init__(self, secret_key: str, webhook_secret: Optional[str] = None) -> None:
        if not secret_key:
            raise PaymentProviderError("STRIPE_SECRET_KEY not configured")
        self.webhook_secret = webhook_secret
        stripe.api_key = secret_key

    def create_intent(self, *, amount: int, currency: str, metadata: Mapping[str, str]) -> PaymentIntentSession:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata=dict(metadata),
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as exc:
            raise PaymentProviderError(f"Stripe payment intent creation failed: {exc}") from exc
        data = _as_dict(intent)
        return PaymentIntentSession(
            intent_id=data["id"],
            client_secret=data["client_secret"],
            amount=int(data["amount"]),
            currency=data["currency"],
        )

    def retrieve_charge(self, intent_id: str) -> Charge:
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
        except stripe.InvalidRequestError as exc:
            raise LookupError("Payment intent not found") from exc
        except stripe.StripeError as exc:
            raise PaymentProviderError(f"Stripe payment intent lookup failed: {exc}") from exc
        data = _as_dict(intent)
        metadata = data.get("metadata") or {}
        return Charge(
            intent_id=data["id"],
            status=data["status"],
            amount=int(data["amount"]),
            currency=data["currency"],
            metadata={str(key): str(value) for key, value in metadata.items()},
        )

    def construct_event(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        if not self.webhook_secret:
            raise WebhookVerificationError("STRIPE_WEBHOOK_SECRET not configured")
        if not signature:
            raise WebhookVerificationError("Missing stripe-signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as exc:
            raise WebhookVerificationError(f"Invalid payload: {exc}") from exc
        except stripe.SignatureVerificationError as exc:
            raise WebhookVerificationError(f"Invalid signature: {exc}") from exc
        body = _as_dict(event)
        return WebhookEvent(
            event_id=body["id"],
            event_type=body["type"],
            data=dict((body.get("data") or {}).get("object") or {}),
        )


def sign_sandbox_payload(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


class LocalSandboxPaymentProvider(PaymentProvider):
    """Minimal provider implementation for local development and tests.

    Intents are held in memory and stay pending until :meth:`complete` is
    called. Webhooks are signed with a hex HMAC-SHA256 of the raw body.
    """

    def __init__(self, webhook_secret: str = "sandbox-webhook-secret") -> None:
        self.webhook_secret = webhook_secret
        self._charges: Dict[str, Charge] = {}
        self._lock = Lock()

    def create_intent(self, *, amount: int, currency: str, metadata: Mapping[str, str]) -> PaymentIntentSession:
        intent_id = f"pi_{uuid4().hex}"
        charge = Charge(
            intent_id=intent_id,
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            metadata=dict(metadata),
        )
        with self._lock:
            self._charges[intent_id] = charge
        return PaymentIntentSession(
            intent_id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}",
            amount=amount,
            currency=currency,
        )

    def complete(self, intent_id: str, *, status: str = "succeeded") -> Charge:
        with self._lock:
            charge = self._charges.get(intent_id)
            if charge is None:
                raise LookupError("Payment intent not found")
            updated = charge.model_copy(update={"status": status})
            self._charges[intent_id] = updated
        logger.debug("Sandbox intent %s marked %s", intent_id, status)
        return updated

    def retrieve_charge(self, intent_id: str) -> Charge:
        with self._lock:
            charge = self._charges.get(intent_id)
        if charge is None:
            raise LookupError("Payment intent not found")
        return charge

    def construct_event(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        expected = sign_sandbox_payload(payload, self.webhook_secret)
        if not signature or not hmac.compare_digest(expected, signature):
            raise WebhookVerificationError("Invalid signature")
        try:
            body = json.loads(payload)
        except ValueError as exc:
            raise WebhookVerificationError(f"Invalid payload: {exc}") from exc
        return WebhookEvent(
            event_id=str(body.get("id") or f"evt_{uuid4().hex}"),
            event_type=str(body.get("type", "")),
            data=dict((body.get("data") or {}).get("object") or {}),
        )
