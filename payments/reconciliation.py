"""
Payment reconciliation: bring orders in line with what Stripe reports.

Three callers end up here: the verify endpoint the customer's browser hits
after checkout, the signed webhook stream, and the sweep over stale
pending checkouts.  All of them may run more than once for the same
payment, in any order, so every write is a compare-and-swap on
``payment_status``:

* a success only lands on an order whose payment is pending, processing
  or failed, and only the request that flips it activates the
  subscription (inside the same transaction);
* a failure only lands on an order whose payment is still pending or
  processing, so a late failure can never undo a payment.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from django.db import models, transaction
from django.utils import timezone

from common.exceptions import UpstreamError
from orders.exceptions import OrderNotFound
from orders.models import PackageOrder

from . import gateway as gateway_module
from .checkout import CHECKOUT_TYPE
from .gateway import GatewayEvent, SessionOutcome

logger = logging.getLogger(__name__)


class GatewayEventType(models.TextChoices):
    CHECKOUT_COMPLETED = "checkout.session.completed"
    CHECKOUT_EXPIRED = "checkout.session.expired"
    PAYMENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_FAILED = "payment_intent.payment_failed"


@dataclass(frozen=True)
class VerificationResult:
    paid: bool
    order: PackageOrder


def record_payment(
    order: PackageOrder,
    *,
    payment_intent_id: str = "",
    customer_id: str = "",
    now: datetime.datetime | None = None,
) -> bool:
    """Mark ``order`` paid and activate its subscription.

    Returns False, changing nothing, when the payment was already recorded
    (or the order was refunded or cancelled on the payment side).
    """
    now = now or timezone.now()
    changes = {"payment_status": PackageOrder.PAYMENT_PAID, "paid_at": now, "updated_at": now}
    if payment_intent_id:
        changes["stripe_payment_intent_id"] = payment_intent_id
        changes["transaction_id"] = payment_intent_id
    if customer_id:
        changes["stripe_customer_id"] = customer_id

    with transaction.atomic():
        updated = (
            PackageOrder.objects.filter(pk=order.pk, payment_status__in=PackageOrder.PAYABLE_STATUSES)
            .update(**changes)
        )
        if not updated:
            order.refresh_from_db()
            logger.info(
                "Order %s payment already %s; skipping activation",
                order.order_number,
                order.payment_status,
            )
            return False
        order.refresh_from_db()
        logger.info("Order %s paid (payment intent %s)", order.order_number, payment_intent_id or "-")
        order.activate_subscription(now)
    return True


def record_failure(order: PackageOrder, now: datetime.datetime | None = None) -> bool:
    """Mark an unpaid order's payment failed and cancel the order."""
    now = now or timezone.now()
    updated = (
        PackageOrder.objects.filter(pk=order.pk, payment_status__in=PackageOrder.FAILABLE_STATUSES)
        .update(
            payment_status=PackageOrder.PAYMENT_FAILED,
            status=PackageOrder.STATUS_CANCELLED,
            updated_at=now,
        )
    )
    order.refresh_from_db()
    if not updated:
        logger.info(
            "Order %s payment is %s; ignoring failure report",
            order.order_number,
            order.payment_status,
        )
        return False
    logger.info("Order %s payment failed; order cancelled", order.order_number)
    return True


def apply_session_outcome(order: PackageOrder, outcome: SessionOutcome) -> None:
    if outcome.paid:
        record_payment(
            order,
            payment_intent_id=outcome.payment_intent_id,
            customer_id=outcome.customer_id,
        )
    elif outcome.unpaid:
        record_failure(order)
    else:
        logger.info(
            "Session %s reports payment status %r; order %s left unchanged",
            outcome.session_id,
            outcome.payment_status,
            order.order_number,
        )


def order_for_session(session_id: str) -> PackageOrder:
    order = PackageOrder.objects.filter(stripe_session_id=session_id).first() if session_id else None
    if order is None:
        raise OrderNotFound("Order not found for this session")
    return order


def order_for_payment_intent(payment_intent: dict) -> PackageOrder | None:
    """Match by stored payment intent id, then by the order number in its metadata."""
    intent_id = payment_intent.get("id") or ""
    order = None
    if intent_id:
        order = PackageOrder.objects.filter(stripe_payment_intent_id=intent_id).first()
    if order is None:
        order_number = (payment_intent.get("metadata") or {}).get("order_number")
        if order_number:
            order = PackageOrder.objects.filter(order_number=order_number).first()
    return order


def verify_payment(session_id: str, gateway=None) -> VerificationResult:
    """Ask the gateway how a checkout session ended and record it."""
    gateway = gateway or gateway_module.get_gateway()
    outcome = gateway.retrieve_session(session_id)
    order = order_for_session(session_id)
    logger.info(
        "Verifying order %s: session %s payment status %s",
        order.order_number,
        session_id,
        outcome.payment_status,
    )
    apply_session_outcome(order, outcome)
    order.refresh_from_db()
    return VerificationResult(paid=outcome.paid, order=order)


def _on_checkout_completed(data: dict) -> None:
    if (data.get("metadata") or {}).get("type") != CHECKOUT_TYPE:
        logger.info("Ignoring checkout session %s: not a package subscription", data.get("id"))
        return
    outcome = SessionOutcome.from_payload(data)
    apply_session_outcome(order_for_session(outcome.session_id), outcome)


def _on_checkout_expired(data: dict) -> None:
    record_failure(order_for_session(data.get("id") or ""))


def _on_payment_succeeded(data: dict) -> None:
    order = order_for_payment_intent(data)
    if order is None:
        logger.warning("No order for payment intent %s", data.get("id"))
        return
    record_payment(
        order,
        payment_intent_id=data.get("id") or "",
        customer_id=gateway_module.object_id(data.get("customer")),
    )


def _on_payment_failed(data: dict) -> None:
    order = order_for_payment_intent(data)
    if order is None:
        logger.warning("No order for failed payment intent %s", data.get("id"))
        return
    record_failure(order)


EVENT_HANDLERS = {
    GatewayEventType.CHECKOUT_COMPLETED: _on_checkout_completed,
    GatewayEventType.CHECKOUT_EXPIRED: _on_checkout_expired,
    GatewayEventType.PAYMENT_SUCCEEDED: _on_payment_succeeded,
    GatewayEventType.PAYMENT_FAILED: _on_payment_failed,
}


def handle_gateway_event(event: GatewayEvent) -> bool:
    """Apply a verified webhook event. Returns False for event types we ignore."""
    try:
        kind = GatewayEventType(event.type)
    except ValueError:
        logger.info("Unhandled event type: %s", event.type)
        return False

    logger.info("Webhook %s received (%s)", kind.value, event.id)
    try:
        EVENT_HANDLERS[kind](event.data)
    except OrderNotFound:
        logger.warning("Webhook %s (%s) refers to an unknown order", kind.value, event.id)
    return True


def reconcile_pending_orders(older_than_minutes: int, limit: int = 50, gateway=None) -> dict:
    """Re-check pending checkouts nobody returned from.

    Paid sessions are recorded, expired ones failed, and sessions still
    open are left alone.
    """
    gateway = gateway or gateway_module.get_gateway()
    cutoff = timezone.now() - datetime.timedelta(minutes=older_than_minutes)
    stale = (
        PackageOrder.objects.filter(
            payment_status__in=PackageOrder.FAILABLE_STATUSES,
            created_at__lt=cutoff,
        )
        .exclude(stripe_session_id="")
        .order_by("created_at")[:limit]
    )

    stats = {"checked": 0, "paid": 0, "failed": 0, "open": 0, "errors": 0}
    for order in stale:
        stats["checked"] += 1
        try:
            outcome = gateway.retrieve_session(order.stripe_session_id)
        except UpstreamError as exc:
            stats["errors"] += 1
            logger.warning("Could not reconcile order %s: %s", order.order_number, exc.detail)
            continue
        if outcome.paid:
            if record_payment(order, payment_intent_id=outcome.payment_intent_id, customer_id=outcome.customer_id):
                stats["paid"] += 1
        elif outcome.expired:
            if record_failure(order):
                stats["failed"] += 1
        else:
            stats["open"] += 1
    return stats
