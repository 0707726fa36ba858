"""
Tests for payment reconciliation: the verify endpoint, gateway event
handling and the sweep over stale pending checkouts.
"""
import datetime

import pytest
from django.core.management import call_command
from django.utils import timezone

from common.exceptions import UpstreamError
from orders.exceptions import OrderNotFound
from orders.models import PackageOrder
from payments.checkout import start_checkout
from payments.gateway import GatewayEvent
from payments.reconciliation import (
    handle_gateway_event,
    reconcile_pending_orders,
    record_failure,
    record_payment,
    verify_payment,
)
from payments.tasks import reconcile_pending_orders_task

CUSTOMER = {"full_name": "Bilal Ahmed", "email": "bilal@example.com"}


@pytest.fixture
def checkout(package, fake_gateway):
    """A pending order with an open checkout session."""
    return start_checkout(None, package.id, CUSTOMER)


def _reload(result):
    return PackageOrder.objects.get(pk=result.order.pk)


def _age(order, minutes):
    PackageOrder.objects.filter(pk=order.pk).update(
        created_at=timezone.now() - datetime.timedelta(minutes=minutes)
    )


@pytest.mark.django_db
def test_verify_paid_session_activates_subscription(checkout, fake_gateway):
    fake_gateway.pay(checkout.checkout_session_id, payment_intent="pi_123", customer="cus_9")

    result = verify_payment(checkout.checkout_session_id)
    assert result.paid is True

    order = _reload(checkout)
    assert order.payment_status == PackageOrder.PAYMENT_PAID
    assert order.status == PackageOrder.STATUS_ACTIVE
    assert order.subscription_is_active is True
    assert order.stripe_payment_intent_id == "pi_123"
    assert order.transaction_id == "pi_123"
    assert order.stripe_customer_id == "cus_9"
    assert order.paid_at is not None
    # "3 months" from now is between 89 and 92 days
    assert 89 <= (order.subscription_end_date - order.subscription_start_date).days <= 92
    assert order.is_subscription_active() is True


@pytest.mark.django_db
def test_verify_is_idempotent(checkout, fake_gateway):
    fake_gateway.pay(checkout.checkout_session_id)
    verify_payment(checkout.checkout_session_id)
    first = _reload(checkout)

    result = verify_payment(checkout.checkout_session_id)
    assert result.paid is True
    second = _reload(checkout)
    assert second.subscription_start_date == first.subscription_start_date
    assert second.subscription_end_date == first.subscription_end_date
    assert second.paid_at == first.paid_at


@pytest.mark.django_db
def test_verify_unpaid_session_fails_order(checkout, fake_gateway):
    fake_gateway.decline(checkout.checkout_session_id)

    result = verify_payment(checkout.checkout_session_id)
    assert result.paid is False

    order = _reload(checkout)
    assert order.payment_status == PackageOrder.PAYMENT_FAILED
    assert order.status == PackageOrder.STATUS_CANCELLED
    assert order.subscription_is_active is False


@pytest.mark.django_db
def test_unknown_payment_status_leaves_order_alone(checkout, fake_gateway):
    fake_gateway.sessions[checkout.checkout_session_id]["payment_status"] = "no_payment_required"
    assert verify_payment(checkout.checkout_session_id).paid is False
    assert _reload(checkout).payment_status == PackageOrder.PAYMENT_PENDING


@pytest.mark.django_db
def test_verify_session_without_order(fake_gateway):
    fake_gateway.sessions["cs_orphan"] = {
        "payment_status": "paid",
        "status": "complete",
        "payment_intent": "pi_x",
        "customer": "",
        "metadata": {},
    }
    with pytest.raises(OrderNotFound):
        verify_payment("cs_orphan")


@pytest.mark.django_db
def test_late_failure_never_undoes_payment(checkout, fake_gateway):
    order = checkout.order
    assert record_payment(order, payment_intent_id="pi_1") is True
    assert record_failure(order) is False

    order.refresh_from_db()
    assert order.payment_status == PackageOrder.PAYMENT_PAID
    assert order.status == PackageOrder.STATUS_ACTIVE
    assert order.subscription_is_active is True


@pytest.mark.django_db
def test_payment_after_failure_is_recorded(checkout):
    order = checkout.order
    assert record_failure(order) is True
    assert record_payment(order, payment_intent_id="pi_retry") is True

    order.refresh_from_db()
    assert order.payment_status == PackageOrder.PAYMENT_PAID
    assert order.status == PackageOrder.STATUS_ACTIVE
    assert order.is_subscription_active() is True


@pytest.mark.django_db
def test_payment_not_recorded_twice(checkout):
    order = checkout.order
    when = timezone.now() - datetime.timedelta(hours=1)
    assert record_payment(order, now=when) is True
    assert record_payment(order) is False
    order.refresh_from_db()
    assert order.paid_at == when
    assert order.subscription_start_date == when


@pytest.mark.django_db
def test_refunded_order_is_not_reactivated(order_factory):
    order = order_factory(payment_status=PackageOrder.PAYMENT_REFUNDED, status=PackageOrder.STATUS_CANCELLED)
    assert record_payment(order) is False
    order.refresh_from_db()
    assert order.status == PackageOrder.STATUS_CANCELLED


def _event(kind, data, event_id="evt_1"):
    return GatewayEvent(id=event_id, type=kind, data=data)


@pytest.mark.django_db
def test_checkout_completed_event(checkout):
    handled = handle_gateway_event(_event("checkout.session.completed", {
        "id": checkout.checkout_session_id,
        "payment_status": "paid",
        "status": "complete",
        "payment_intent": "pi_hook",
        "customer": {"id": "cus_hook"},
        "metadata": {"type": "package_subscription", "order_number": checkout.order_number},
    }))
    assert handled is True
    order = _reload(checkout)
    assert order.payment_status == PackageOrder.PAYMENT_PAID
    assert order.stripe_payment_intent_id == "pi_hook"
    assert order.stripe_customer_id == "cus_hook"
    assert order.is_subscription_active() is True


@pytest.mark.django_db
def test_checkout_completed_for_other_products_is_ignored(checkout):
    handle_gateway_event(_event("checkout.session.completed", {
        "id": checkout.checkout_session_id,
        "payment_status": "paid",
        "metadata": {"type": "gift_card"},
    }))
    assert _reload(checkout).payment_status == PackageOrder.PAYMENT_PENDING


@pytest.mark.django_db
def test_checkout_completed_for_unknown_session_is_acknowledged(db):
    handled = handle_gateway_event(_event("checkout.session.completed", {
        "id": "cs_missing",
        "payment_status": "paid",
        "metadata": {"type": "package_subscription"},
    }))
    assert handled is True


@pytest.mark.django_db
def test_checkout_expired_event(checkout):
    handle_gateway_event(_event("checkout.session.expired", {"id": checkout.checkout_session_id}))
    order = _reload(checkout)
    assert order.payment_status == PackageOrder.PAYMENT_FAILED
    assert order.status == PackageOrder.STATUS_CANCELLED


@pytest.mark.django_db
def test_payment_succeeded_matches_by_order_number(checkout):
    handle_gateway_event(_event("payment_intent.succeeded", {
        "id": "pi_new",
        "customer": "cus_1",
        "metadata": {"order_number": checkout.order_number},
    }))
    order = _reload(checkout)
    assert order.payment_status == PackageOrder.PAYMENT_PAID
    assert order.stripe_payment_intent_id == "pi_new"
    assert order.status == PackageOrder.STATUS_ACTIVE


@pytest.mark.django_db
def test_payment_failed_event(checkout):
    PackageOrder.objects.filter(pk=checkout.order.pk).update(stripe_payment_intent_id="pi_bad")
    handle_gateway_event(_event("payment_intent.payment_failed", {"id": "pi_bad"}))
    order = _reload(checkout)
    assert order.payment_status == PackageOrder.PAYMENT_FAILED
    assert order.status == PackageOrder.STATUS_CANCELLED


@pytest.mark.django_db
def test_payment_failed_after_success_is_ignored(checkout):
    record_payment(checkout.order, payment_intent_id="pi_ok")
    handle_gateway_event(_event("payment_intent.payment_failed", {"id": "pi_ok"}))
    order = _reload(checkout)
    assert order.payment_status == PackageOrder.PAYMENT_PAID
    assert order.is_subscription_active() is True


@pytest.mark.django_db
def test_events_in_any_order_end_paid(checkout):
    completed = _event("checkout.session.completed", {
        "id": checkout.checkout_session_id,
        "payment_status": "paid",
        "payment_intent": "pi_both",
        "metadata": {"type": "package_subscription"},
    })
    succeeded = _event("payment_intent.succeeded", {
        "id": "pi_both",
        "metadata": {"order_number": checkout.order_number},
    }, event_id="evt_2")

    handle_gateway_event(succeeded)
    start = _reload(checkout).subscription_start_date
    handle_gateway_event(completed)
    handle_gateway_event(succeeded)

    order = _reload(checkout)
    assert order.payment_status == PackageOrder.PAYMENT_PAID
    assert order.subscription_start_date == start


@pytest.mark.django_db
def test_unhandled_event_type(db):
    assert handle_gateway_event(_event("invoice.paid", {"id": "in_1"})) is False


@pytest.mark.django_db
def test_verify_endpoint(client, checkout, fake_gateway):
    fake_gateway.pay(checkout.checkout_session_id)
    resp = client.get(f"/api/gymfolio/payment/verify/{checkout.checkout_session_id}/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["paid"] is True
    assert body["data"]["order_number"] == checkout.order_number
    assert body["data"]["status"] == "active"
    assert body["data"]["is_subscription_active"] is True


@pytest.mark.django_db
def test_verify_endpoint_errors(client, fake_gateway):
    resp = client.get("/api/gymfolio/payment/verify/cs_nowhere/")
    assert resp.status_code == 502
    assert resp.json()["success"] is False

    fake_gateway.sessions["cs_orphan"] = {
        "payment_status": "unpaid", "status": "open", "payment_intent": "", "customer": "", "metadata": {},
    }
    resp = client.get("/api/gymfolio/payment/verify/cs_orphan/")
    assert resp.status_code == 404


@pytest.mark.django_db
def test_reconcile_pending_orders(package, fake_gateway):
    paid = start_checkout(None, package.id, CUSTOMER)
    expired = start_checkout(None, package.id, CUSTOMER)
    still_open = start_checkout(None, package.id, CUSTOMER)
    fresh = start_checkout(None, package.id, CUSTOMER)
    for result in (paid, expired, still_open):
        _age(result.order, 120)
    fake_gateway.pay(paid.checkout_session_id)
    fake_gateway.expire(expired.checkout_session_id)
    fake_gateway.pay(fresh.checkout_session_id)

    stats = reconcile_pending_orders(60)
    assert stats == {"checked": 3, "paid": 1, "failed": 1, "open": 1, "errors": 0}

    assert _reload(paid).is_subscription_active() is True
    assert _reload(expired).payment_status == PackageOrder.PAYMENT_FAILED
    assert _reload(still_open).payment_status == PackageOrder.PAYMENT_PENDING
    assert _reload(fresh).payment_status == PackageOrder.PAYMENT_PENDING
    assert fresh.checkout_session_id not in fake_gateway.retrieved


@pytest.mark.django_db
def test_reconcile_counts_gateway_errors(checkout, fake_gateway):
    _age(checkout.order, 120)
    fake_gateway.fail_retrieve = UpstreamError("timeout")
    stats = reconcile_pending_orders(60)
    assert stats["checked"] == 1
    assert stats["errors"] == 1
    assert _reload(checkout).payment_status == PackageOrder.PAYMENT_PENDING


@pytest.mark.django_db
def test_reconcile_task_and_command(checkout, fake_gateway):
    _age(checkout.order, 120)
    fake_gateway.pay(checkout.checkout_session_id)

    call_command("reconcile_pending_orders", "--older-than-minutes", "60")
    assert _reload(checkout).payment_status == PackageOrder.PAYMENT_PAID

    stats = reconcile_pending_orders_task.apply().get()
    assert stats["checked"] == 0
