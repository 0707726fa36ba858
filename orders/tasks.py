"""
Celery tasks for the orders app.

``expire_subscriptions_task`` is scheduled through ``CELERY_BEAT_SCHEDULE``
and closes out subscriptions whose term has ended.
"""
from __future__ import annotations

import logging

from celery import shared_task

from .services import expire_subscriptions

logger = logging.getLogger(__name__)


@shared_task
def expire_subscriptions_task() -> int:
    """Mark lapsed active subscriptions as expired."""
    count = expire_subscriptions()
    if count:
        logger.info("Expired %s subscription(s)", count)
    return count
