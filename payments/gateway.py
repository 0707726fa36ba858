"""
Stripe adapter used by checkout and reconciliation.

Only this module talks to the ``stripe`` library.  It hands back small
value objects so the rest of the app never depends on Stripe's object
model, and it converts Stripe failures into ``UpstreamError``.  Tests swap
the process-wide adapter for a fake with ``set_gateway``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

import stripe
from django.conf import settings
from rest_framework import status

from common.exceptions import UpstreamError

logger = logging.getLogger(__name__)

PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUS_UNPAID = "unpaid"
SESSION_STATUS_EXPIRED = "expired"


class SignatureVerificationFailed(UpstreamError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Webhook signature verification failed."
    default_code = "invalid_signature"


class WebhookNotConfigured(UpstreamError):
    default_detail = "Webhook secret not configured."
    default_code = "webhook_not_configured"


@dataclass(frozen=True)
class LineItem:
    name: str
    description: str
    amount_minor: int
    currency: str
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


@dataclass(frozen=True)
class SessionOutcome:
    """What the gateway says about one checkout session."""

    session_id: str
    payment_status: str
    session_status: str = ""
    payment_intent_id: str = ""
    customer_id: str = ""
    metadata: dict = field(default_factory=dict)

    @property
    def paid(self) -> bool:
        return self.payment_status == PAYMENT_STATUS_PAID

    @property
    def unpaid(self) -> bool:
        return self.payment_status == PAYMENT_STATUS_UNPAID

    @property
    def expired(self) -> bool:
        return self.session_status == SESSION_STATUS_EXPIRED

    @classmethod
    def from_payload(cls, data: dict) -> "SessionOutcome":
        """Build from a checkout session as it appears in a webhook body."""
        return cls(
            session_id=data.get("id") or "",
            payment_status=data.get("payment_status") or "",
            session_status=data.get("status") or "",
            payment_intent_id=object_id(data.get("payment_intent")),
            customer_id=object_id(data.get("customer")),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class GatewayEvent:
    id: str
    type: str
    data: dict


def object_id(value) -> str:
    """Stripe fields like ``payment_intent`` are either an id or an expanded object."""
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get("id") or ""
    return getattr(value, "id", "") or ""


class StripeGateway:
    """Checkout sessions, session lookups and webhook verification on Stripe."""

    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET
        )

    def create_checkout_session(
        self,
        *,
        line_item: LineItem,
        success_url: str,
        cancel_url: str,
        customer_email: str,
        client_reference_id: str,
        metadata: dict,
    ) -> CheckoutSession:
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=["card"],
                line_items=[{
                    "price_data": {
                        "currency": line_item.currency.lower(),
                        "product_data": {
                            "name": line_item.name,
                            "description": line_item.description,
                            "metadata": line_item.metadata,
                        },
                        "unit_amount": line_item.amount_minor,
                    },
                    "quantity": 1,
                }],
                mode="payment",
                success_url=success_url,
                cancel_url=cancel_url,
                customer_email=customer_email,
                client_reference_id=client_reference_id,
                metadata=metadata,
                # payment intent events carry the order number too
                payment_intent_data={"metadata": metadata},
                allow_promotion_codes=True,
                billing_address_collection="auto",
                phone_number_collection={"enabled": True},
            )
        except stripe.StripeError as exc:
            logger.error("Stripe checkout session creation failed for %s: %s", client_reference_id, exc)
            raise UpstreamError(f"Stripe checkout session creation failed: {exc}") from exc
        return CheckoutSession(id=session.id, url=session.url)

    def retrieve_session(self, session_id: str) -> SessionOutcome:
        try:
            session = stripe.checkout.Session.retrieve(
                session_id,
                api_key=self.api_key,
                expand=["payment_intent"],
            )
        except stripe.StripeError as exc:
            logger.error("Stripe session lookup failed for %s: %s", session_id, exc)
            raise UpstreamError(f"Stripe session lookup failed: {exc}") from exc
        metadata = getattr(session, "metadata", None)
        return SessionOutcome(
            session_id=session.id,
            payment_status=getattr(session, "payment_status", "") or "",
            session_status=getattr(session, "status", "") or "",
            payment_intent_id=object_id(getattr(session, "payment_intent", None)),
            customer_id=object_id(getattr(session, "customer", None)),
            metadata=dict(metadata.to_dict() if hasattr(metadata, "to_dict") else (metadata or {})),
        )

    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        """Verify a webhook body against its ``Stripe-Signature`` header."""
        if not self.webhook_secret:
            raise WebhookNotConfigured()
        if not signature:
            raise SignatureVerificationFailed("Missing Stripe-Signature header.")
        try:
            stripe.Webhook.construct_event(payload=payload, sig_header=signature, secret=self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Webhook signature verification failed: %s", exc)
            raise SignatureVerificationFailed() from exc
        body = json.loads(payload)
        return GatewayEvent(
            id=body.get("id", ""),
            type=body.get("type", ""),
            data=(body.get("data") or {}).get("object") or {},
        )


_gateway = None


def get_gateway():
    global _gateway
    if _gateway is None:
        _gateway = StripeGateway()
    return _gateway


def set_gateway(gateway) -> None:
    """Replace the process-wide gateway (``None`` resets to Stripe)."""
    global _gateway
    _gateway = gateway
