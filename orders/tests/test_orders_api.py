"""
API tests for the orders app.

Covers the customer's order history and detail views, the staff order
list with its filters, administrative status changes, subscription
cancellation and the active subscription summary.
"""
import datetime
from decimal import Decimal

import pytest
from django.utils import timezone

from orders.models import PackageOrder


def _paid_active(order_factory, **kwargs):
    now = timezone.now()
    defaults = dict(
        payment_status=PackageOrder.PAYMENT_PAID,
        status=PackageOrder.STATUS_ACTIVE,
        subscription_is_active=True,
        subscription_start_date=now,
        subscription_end_date=now + datetime.timedelta(days=90),
        paid_at=now,
    )
    defaults.update(kwargs)
    return order_factory(**defaults)


@pytest.mark.django_db
def test_my_orders_lists_only_own_orders(auth_client, user, other_user, order_factory):
    mine = [order_factory(user=user) for _ in range(3)]
    order_factory(user=other_user)
    order_factory()  # guest checkout

    resp = auth_client.get("/api/gymfolio/orders/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert {o["id"] for o in body["data"]} == {o.id for o in mine}
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 3, "pages": 1}


@pytest.mark.django_db
def test_my_orders_requires_authentication(client):
    resp = client.get("/api/gymfolio/orders/")
    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.django_db
def test_my_orders_pagination_and_status_filter(auth_client, user, order_factory):
    for _ in range(3):
        order_factory(user=user)
    for _ in range(2):
        _paid_active(order_factory, user=user)

    resp = auth_client.get("/api/gymfolio/orders/", {"limit": 2, "page": 2})
    body = resp.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}

    resp = auth_client.get("/api/gymfolio/orders/", {"status": "active"})
    assert resp.json()["pagination"]["total"] == 2
    assert all(o["status"] == "active" for o in resp.json()["data"])


@pytest.mark.django_db
def test_invalid_filter_value_is_rejected(auth_client):
    resp = auth_client.get("/api/gymfolio/orders/", {"status": "bogus"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.django_db
def test_order_representation(auth_client, user, order_factory):
    order = _paid_active(order_factory, user=user)

    resp = auth_client.get(f"/api/gymfolio/orders/{order.id}/")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["order_number"] == order.order_number
    assert data["package_details"]["name"] == "Pro"
    assert data["package_details"]["price"] == "13,000"
    assert data["package_details"]["period"] == "3 months"
    assert data["customer_info"]["email"] == order.customer_email
    assert data["payment"]["status"] == "paid"
    assert Decimal(data["payment"]["amount"]) == Decimal("13000")
    assert data["subscription"]["is_active"] is True
    assert data["subscription"]["duration_days"] == 90
    assert data["is_subscription_active"] is True


@pytest.mark.django_db
def test_order_detail_is_scoped_to_owner(auth_client, other_client, staff_client, user, order_factory):
    order = order_factory(user=user)

    assert auth_client.get(f"/api/gymfolio/orders/{order.id}/").status_code == 200
    resp = other_client.get(f"/api/gymfolio/orders/{order.id}/")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Order not found.", "code": "order_not_found"}
    assert staff_client.get(f"/api/gymfolio/orders/{order.id}/").status_code == 200


@pytest.mark.django_db
def test_admin_list_requires_staff(auth_client):
    resp = auth_client.get("/api/gymfolio/admin/orders/")
    assert resp.status_code == 403


@pytest.mark.django_db
def test_admin_list_filters_and_search(staff_client, user, order_factory):
    order_factory(user=user, customer_email="alice@example.com", customer_full_name="Alice Khan")
    _paid_active(order_factory, customer_email="bob@example.com", customer_full_name="Bob Ali")
    order_factory(payment_status=PackageOrder.PAYMENT_FAILED, status=PackageOrder.STATUS_CANCELLED)

    resp = staff_client.get("/api/gymfolio/admin/orders/")
    assert resp.status_code == 200
    assert resp.json()["pagination"]["total"] == 3
    assert resp.json()["pagination"]["limit"] == 20

    resp = staff_client.get("/api/gymfolio/admin/orders/", {"search": "alice"})
    assert [o["customer_info"]["email"] for o in resp.json()["data"]] == ["alice@example.com"]

    resp = staff_client.get("/api/gymfolio/admin/orders/", {"payment_status": "paid"})
    assert [o["customer_info"]["email"] for o in resp.json()["data"]] == ["bob@example.com"]

    resp = staff_client.get("/api/gymfolio/admin/orders/", {"status": "cancelled", "payment_status": "failed"})
    assert resp.json()["pagination"]["total"] == 1


@pytest.mark.django_db
def test_admin_list_sorting(staff_client, order_factory):
    order_factory(payment_amount=Decimal("500"))
    order_factory(payment_amount=Decimal("9000"))
    order_factory(payment_amount=Decimal("13000"))

    resp = staff_client.get("/api/gymfolio/admin/orders/", {"sort": "payment_amount"})
    amounts = [Decimal(o["payment"]["amount"]) for o in resp.json()["data"]]
    assert amounts == [Decimal("500"), Decimal("9000"), Decimal("13000")]

    resp = staff_client.get("/api/gymfolio/admin/orders/", {"sort": "-payment_amount"})
    amounts = [Decimal(o["payment"]["amount"]) for o in resp.json()["data"]]
    assert amounts == [Decimal("13000"), Decimal("9000"), Decimal("500")]

    resp = staff_client.get("/api/gymfolio/admin/orders/", {"sort": "customer_email"})
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("sort: Unsupported sort field")


@pytest.mark.django_db
def test_limit_is_capped(staff_client, order_factory):
    order_factory()
    resp = staff_client.get("/api/gymfolio/admin/orders/", {"limit": 500})
    assert resp.json()["pagination"]["limit"] == 100


@pytest.mark.django_db
def test_staff_can_suspend_without_touching_payment(staff_client, order_factory):
    order = _paid_active(order_factory)

    resp = staff_client.put(
        f"/api/gymfolio/orders/{order.id}/status/", {"status": "suspended"}, content_type="application/json"
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "suspended"

    order.refresh_from_db()
    assert order.status == PackageOrder.STATUS_SUSPENDED
    assert order.subscription_is_active is False
    assert order.payment_status == PackageOrder.PAYMENT_PAID
    assert order.is_subscription_active() is False


@pytest.mark.django_db
def test_status_update_to_active_keeps_subscription_flag(staff_client, order_factory):
    order = _paid_active(order_factory, status=PackageOrder.STATUS_EXPIRED)
    resp = staff_client.put(
        f"/api/gymfolio/orders/{order.id}/status/", {"status": "active"}, content_type="application/json"
    )
    assert resp.status_code == 200
    order.refresh_from_db()
    assert order.status == PackageOrder.STATUS_ACTIVE
    assert order.subscription_is_active is True


@pytest.mark.django_db
def test_status_update_rejects_unknown_status(staff_client, order_factory):
    order = order_factory()
    resp = staff_client.put(
        f"/api/gymfolio/orders/{order.id}/status/", {"status": "archived"}, content_type="application/json"
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"].startswith("status: Invalid status. Must be one of: pending, active")
    order.refresh_from_db()
    assert order.status == PackageOrder.STATUS_PENDING


@pytest.mark.django_db
def test_status_update_requires_staff(auth_client, user, order_factory):
    order = order_factory(user=user)
    resp = auth_client.put(
        f"/api/gymfolio/orders/{order.id}/status/", {"status": "active"}, content_type="application/json"
    )
    assert resp.status_code == 403


@pytest.mark.django_db
def test_status_update_unknown_order(staff_client):
    resp = staff_client.put(
        "/api/gymfolio/orders/999999/status/", {"status": "active"}, content_type="application/json"
    )
    assert resp.status_code == 404


@pytest.mark.django_db
def test_cancel_subscription(auth_client, user, order_factory):
    order = _paid_active(order_factory, user=user, subscription_auto_renew=True)

    resp = auth_client.post(f"/api/gymfolio/orders/{order.id}/cancel/")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Subscription cancelled successfully"

    order.refresh_from_db()
    assert order.status == PackageOrder.STATUS_CANCELLED
    assert order.subscription_is_active is False
    assert order.subscription_auto_renew is False
    assert order.payment_status == PackageOrder.PAYMENT_PAID


@pytest.mark.django_db
def test_cancel_twice_conflicts_and_changes_nothing(auth_client, user, order_factory):
    order = _paid_active(order_factory, user=user)
    assert auth_client.post(f"/api/gymfolio/orders/{order.id}/cancel/").status_code == 200
    order.refresh_from_db()
    snapshot = (order.status, order.subscription_is_active, order.updated_at)

    resp = auth_client.post(f"/api/gymfolio/orders/{order.id}/cancel/")
    assert resp.status_code == 409
    assert resp.json()["code"] == "already_cancelled"

    order.refresh_from_db()
    assert (order.status, order.subscription_is_active, order.updated_at) == snapshot


@pytest.mark.django_db
def test_cannot_cancel_someone_elses_order(other_client, user, order_factory):
    order = _paid_active(order_factory, user=user)
    assert other_client.post(f"/api/gymfolio/orders/{order.id}/cancel/").status_code == 404
    order.refresh_from_db()
    assert order.status == PackageOrder.STATUS_ACTIVE


@pytest.mark.django_db
def test_subscription_status(auth_client, user, order_factory):
    current = _paid_active(order_factory, user=user)
    _paid_active(order_factory, user=user, status=PackageOrder.STATUS_SUSPENDED)
    order_factory(user=user)

    resp = auth_client.get("/api/gymfolio/subscription/status/")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["count"] == 1
    assert [o["id"] for o in data["active_subscriptions"]] == [current.id]
