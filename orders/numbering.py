"""
Order number issuing.

Numbers look like ``PKG`` + two-digit year + two-digit month + a
four-digit sequence that restarts every month, e.g. ``PKG25100007``.
Sequences come from an ``OrderSequence`` row per month, incremented under
a row lock, so two checkouts in the same instant never receive the same
number.  A month's row is seeded from the highest number already issued
for that month.
"""
from __future__ import annotations

import datetime

from django.db import transaction
from django.db.models import F
from django.db.models.functions import Length
from django.utils import timezone

from .models import OrderSequence, PackageOrder

ORDER_PREFIX = "PKG"
SEQUENCE_WIDTH = 4


def period_key(now: datetime.datetime) -> str:
    return now.strftime("%y%m")


def highest_issued_sequence(prefix: str) -> int:
    """Largest sequence issued under ``prefix``; longer suffixes rank higher."""
    last = (
        PackageOrder.objects.filter(order_number__startswith=prefix)
        .order_by(Length("order_number").desc(), "-order_number")
        .values_list("order_number", flat=True)
        .first()
    )
    if not last:
        return 0
    tail = last[len(prefix):]
    return int(tail) if tail.isdigit() else 0


def next_order_number(now: datetime.datetime | None = None) -> str:
    """Reserve and return the next order number for the month of ``now``."""
    now = timezone.localtime(now or timezone.now())
    key = period_key(now)
    prefix = f"{ORDER_PREFIX}{key}"

    with transaction.atomic():
        sequence, created = OrderSequence.objects.select_for_update().get_or_create(
            period=key,
            defaults={"last_value": highest_issued_sequence(prefix)},
        )
        sequence.last_value = F("last_value") + 1
        sequence.save(update_fields=["last_value", "updated_at"])
        sequence.refresh_from_db(fields=["last_value"])

    return f"{prefix}{sequence.last_value:0{SEQUENCE_WIDTH}d}"
