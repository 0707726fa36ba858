"""
Catalog lookup used by checkout.

``get_package`` resolves a package id to a ``PackageQuote``: the typed
amount and currency checkout charges, plus the display strings that get
copied into the order as its package snapshot.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from rest_framework import status
from rest_framework.exceptions import APIException, NotFound

from .models import Package
from .parsing import normalize_currency, parse_price

logger = logging.getLogger(__name__)


class PackageNotFound(NotFound):
    default_detail = "Package not found."
    default_code = "package_not_found"


class PackageInactive(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Package is not active."
    default_code = "package_inactive"


class InvalidPrice(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Package price is invalid."
    default_code = "invalid_price"


@dataclass(frozen=True)
class PackageQuote:
    package_id: int
    name: str
    display_price: str
    display_currency: str
    period: str
    features: list[str] = field(default_factory=list)
    amount: Decimal = Decimal("0")
    currency: str = "USD"


def get_package(package_id) -> PackageQuote:
    """Return a checkout quote for an active package.

    Raises:
        PackageNotFound: no package has this id.
        PackageInactive: the package exists but is switched off.
        InvalidPrice: the display price has no positive amount in it.
    """
    try:
        package = Package.objects.get(pk=package_id)
    except (Package.DoesNotExist, ValueError, TypeError):
        raise PackageNotFound(f"Package not found: {package_id}")

    if not package.is_active:
        raise PackageInactive(f"Package is not active: {package.name}")

    amount = parse_price(package.price)
    if amount is None:
        logger.warning("Package %s has an unusable price %r", package.pk, package.price)
        raise InvalidPrice(f"Invalid package price: {package.price}")

    return PackageQuote(
        package_id=package.pk,
        name=package.name,
        display_price=package.price,
        display_currency=package.currency,
        period=package.period,
        features=list(package.features or []),
        amount=amount,
        currency=normalize_currency(package.currency),
    )
