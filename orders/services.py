"""
Order store operations used by the API views, the admin surface and the
periodic sweeps.

Status changes are written with conditional ``UPDATE`` statements so that
two requests racing on the same order cannot both succeed where only one
should (for example, a double cancel).
"""
from __future__ import annotations

import datetime
import logging

from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from .exceptions import AlreadyCancelled, OrderNotFound
from .models import PackageOrder

logger = logging.getLogger(__name__)

VALID_STATUSES = [value for value, _ in PackageOrder.STATUS_CHOICES]


def get_order(order_id, user=None) -> PackageOrder:
    """Fetch one order, optionally restricted to orders owned by ``user``."""
    qs = PackageOrder.objects.select_related("package", "user")
    if user is not None:
        qs = qs.for_user(user)
    try:
        return qs.get(pk=order_id)
    except (PackageOrder.DoesNotExist, ValueError, TypeError):
        raise OrderNotFound()


def get_order_for_requester(order_id, user) -> PackageOrder:
    """Staff may open any order; everyone else only their own."""
    scope = None if (user.is_staff or user.is_superuser) else user
    return get_order(order_id, user=scope)


def update_order_status(order: PackageOrder, new_status: str) -> PackageOrder:
    """Administrative status change.

    Cancelling or suspending switches the subscription flag off; the
    payment record is left as it is.
    """
    if new_status not in VALID_STATUSES:
        raise ValidationError(
            {"status": f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}"}
        )
    previous = order.status
    order.status = new_status
    fields = ["status", "updated_at"]
    if new_status in PackageOrder.DEACTIVATING_STATUSES:
        order.subscription_is_active = False
        fields.append("subscription_is_active")
    order.save(update_fields=fields)
    logger.info("Order %s status changed %s -> %s", order.order_number, previous, new_status)
    return order


def cancel_subscription(order: PackageOrder) -> PackageOrder:
    """Cancel an order's subscription; fails if it is already cancelled."""
    updated = (
        PackageOrder.objects.filter(pk=order.pk)
        .exclude(status=PackageOrder.STATUS_CANCELLED)
        .update(
            status=PackageOrder.STATUS_CANCELLED,
            subscription_is_active=False,
            subscription_auto_renew=False,
            updated_at=timezone.now(),
        )
    )
    if not updated:
        raise AlreadyCancelled()
    order.refresh_from_db()
    logger.info("Order %s subscription cancelled", order.order_number)
    return order


def active_subscriptions(user, now: datetime.datetime | None = None) -> list[PackageOrder]:
    """The user's orders whose subscription is currently in force."""
    now = now or timezone.now()
    candidates = (
        PackageOrder.objects.for_user(user)
        .filter(status=PackageOrder.STATUS_ACTIVE, subscription_is_active=True)
        .filter(Q(subscription_end_date__isnull=True) | Q(subscription_end_date__gte=now))
        .select_related("package")
        .order_by("-created_at")
    )
    return [order for order in candidates if order.is_subscription_active(now)]


def expire_subscriptions(now: datetime.datetime | None = None) -> int:
    """Move active orders past their end date to ``expired``."""
    now = now or timezone.now()
    lapsed = list(PackageOrder.objects.lapsed(now).values_list("pk", "order_number"))
    if not lapsed:
        return 0
    count = (
        PackageOrder.objects.lapsed(now)
        .filter(pk__in=[pk for pk, _ in lapsed])
        .update(status=PackageOrder.STATUS_EXPIRED, subscription_is_active=False, updated_at=now)
    )
    for _, number in lapsed:
        logger.info("Order %s subscription expired", number)
    return count
