"""
Celery tasks for the payments app.

``reconcile_pending_orders_task`` runs on the beat schedule and re-checks
checkouts that are still pending after ``PENDING_CHECKOUT_TTL_MINUTES``,
catching payments whose webhook never arrived and sessions that expired.
"""
from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings

from .reconciliation import reconcile_pending_orders

logger = logging.getLogger(__name__)


@shared_task
def reconcile_pending_orders_task(limit: int = 50) -> dict:
    """Reconcile stale pending checkouts against Stripe.

    Args:
        limit: Maximum number of orders to check in one run.
    """
    stats = reconcile_pending_orders(settings.PENDING_CHECKOUT_TTL_MINUTES, limit=limit)
    logger.info("Pending order reconciliation: %s", stats)
    return stats
