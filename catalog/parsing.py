"""
Parsers for the free-text price, currency and period fields of a package.

These run once, at the catalog boundary, when a checkout quote is built and
when a subscription term is computed from an order's package snapshot.
"""
from __future__ import annotations

import calendar
import datetime
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

DEFAULT_CURRENCY = "USD"
DEFAULT_TERM_DAYS = 30

CURRENCY_ALIASES = {
    "$": "USD",
    "usd": "USD",
    "€": "EUR",
    "eur": "EUR",
    "£": "GBP",
    "gbp": "GBP",
    "pkr": "PKR",
    "rs": "PKR",
    "inr": "PKR",
}

_NON_PRICE_CHARS = re.compile(r"[^\d.]")
_FIRST_INT = re.compile(r"\d+")


def parse_price(raw: str | None) -> Decimal | None:
    """Return the positive amount in a display price, or None if there is none.

    Everything except digits and dots is dropped, so "13,000" and "Rs 13000"
    both give 13000.
    """
    cleaned = _NON_PRICE_CHARS.sub("", raw or "")
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def normalize_currency(raw: str | None) -> str:
    """Map a currency symbol or code to a canonical three-letter code."""
    key = (raw or "").strip().lower()
    return CURRENCY_ALIASES.get(key, DEFAULT_CURRENCY)


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class BillingTerm:
    """How long one purchase of a package lasts."""

    months: int = 0
    years: int = 0
    days: int = 0

    def end_from(self, start: datetime.datetime) -> datetime.datetime:
        if self.years:
            return add_months(start, 12 * self.years)
        if self.months:
            return add_months(start, self.months)
        return start + datetime.timedelta(days=self.days)


def parse_period(raw: str | None) -> BillingTerm:
    """Classify a period string.

    "month" wins over "year"; the first integer in the text is the count
    (1 when absent).  Anything mentioning neither, "Custom" or "B2B Deal"
    included, is a 30 day term.
    """
    text = (raw or "").lower()
    match = _FIRST_INT.search(text)
    count = int(match.group()) if match and int(match.group()) > 0 else 1
    if "month" in text:
        return BillingTerm(months=count)
    if "year" in text:
        return BillingTerm(years=count)
    return BillingTerm(days=DEFAULT_TERM_DAYS)


def add_months(value: datetime.datetime, months: int) -> datetime.datetime:
    """Calendar month arithmetic, clamping to the last day of the target month."""
    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
