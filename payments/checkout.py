"""
Checkout initiation for catalog packages.

``start_checkout`` prices the package, reserves an order number, opens a
Stripe Checkout session and records a pending order that snapshots the
package and the customer.  The session is created before the order is
written: a gateway failure leaves nothing behind, while a database failure
after the session exists leaves an orphaned session that the
reconciliation sweep and Stripe's own session expiry take care of.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import DatabaseError
from rest_framework.exceptions import ValidationError

from catalog.lookup import get_package
from catalog.parsing import to_minor_units
from common.exceptions import PersistenceError
from orders.models import PackageOrder
from orders.numbering import next_order_number

from . import gateway as gateway_module
from .gateway import LineItem

logger = logging.getLogger(__name__)

CHECKOUT_TYPE = "package_subscription"
CUSTOMER_FIELDS = ("full_name", "email", "phone", "country", "address", "city", "state", "zip_code")


@dataclass(frozen=True)
class CheckoutResult:
    checkout_url: str
    checkout_session_id: str
    order_number: str
    order: PackageOrder


def _line_item(quote) -> LineItem:
    highlights = ", ".join(quote.features[:3])
    description = f"{quote.period} - {highlights}" if highlights else quote.period
    return LineItem(
        name=f"{quote.name} Package",
        description=description,
        amount_minor=to_minor_units(quote.amount),
        currency=quote.currency,
        metadata={
            "package_id": str(quote.package_id),
            "package_name": quote.name,
            "period": quote.period,
        },
    )


def start_checkout(user, package_id, customer_info: dict, gateway=None) -> CheckoutResult:
    """Open a checkout session for ``package_id`` and record a pending order.

    ``user`` is ``None`` for guest checkouts.
    """
    if not package_id:
        raise ValidationError({"package_id": "Package ID is required"})
    if not customer_info or not customer_info.get("email"):
        raise ValidationError({"customer_info": "Customer information is required"})

    gateway = gateway or gateway_module.get_gateway()
    quote = get_package(package_id)
    customer = {name: (customer_info.get(name) or "").strip() for name in CUSTOMER_FIELDS}
    order_number = next_order_number()

    logger.info(
        "Creating checkout for package %s (%s) order %s, user %s",
        quote.package_id,
        quote.name,
        order_number,
        user.pk if user else "guest",
    )
    session = gateway.create_checkout_session(
        line_item=_line_item(quote),
        success_url=settings.CHECKOUT_SUCCESS_URL,
        cancel_url=settings.CHECKOUT_CANCEL_URL,
        customer_email=customer["email"],
        client_reference_id=order_number,
        metadata={
            "user_id": str(user.pk) if user else "guest",
            "package_id": str(quote.package_id),
            "package_name": quote.name,
            "order_number": order_number,
            "customer_email": customer["email"],
            "customer_name": customer["full_name"],
            "type": CHECKOUT_TYPE,
        },
    )

    try:
        order = PackageOrder.objects.create(
            order_number=order_number,
            user=user,
            package_id=quote.package_id,
            package_name=quote.name,
            package_price=quote.display_price,
            package_currency=quote.display_currency,
            package_period=quote.period,
            package_features=list(quote.features),
            customer_full_name=customer["full_name"],
            customer_email=customer["email"],
            customer_phone=customer["phone"],
            customer_country=customer["country"],
            customer_address=customer["address"],
            customer_city=customer["city"],
            customer_state=customer["state"],
            customer_zip_code=customer["zip_code"],
            payment_method=PackageOrder.METHOD_STRIPE,
            stripe_session_id=session.id,
            payment_amount=quote.amount,
            payment_currency=quote.currency,
            payment_status=PackageOrder.PAYMENT_PENDING,
            status=PackageOrder.STATUS_PENDING,
        )
    except DatabaseError as exc:
        logger.error(
            "Checkout session %s was created for order %s but the order could not be saved; "
            "the session is orphaned: %s",
            session.id,
            order_number,
            exc,
        )
        raise PersistenceError() from exc

    logger.info("Order %s created with checkout session %s", order_number, session.id)
    return CheckoutResult(
        checkout_url=session.url,
        checkout_session_id=session.id,
        order_number=order_number,
        order=order,
    )
