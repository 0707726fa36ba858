"""
Database models for the orders app.

A ``PackageOrder`` is one purchase attempt of a catalog package and the
subscription it buys.  The package name, price, currency, period and
features are copied onto the order at checkout so later catalog edits
never rewrite order history.  Payment status and the overall order status
are separate: a paid order can still be suspended by an administrator.
"""
from __future__ import annotations

import datetime
import logging

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from catalog.parsing import parse_period

logger = logging.getLogger(__name__)


class PackageOrderQuerySet(models.QuerySet):
    def for_user(self, user):
        return self.filter(user=user)

    def search(self, term: str):
        term = (term or "").strip()
        if not term:
            return self
        return self.filter(
            Q(order_number__icontains=term)
            | Q(customer_email__icontains=term)
            | Q(customer_full_name__icontains=term)
        )

    def lapsed(self, now: datetime.datetime | None = None):
        """Active orders whose subscription term has run out."""
        now = now or timezone.now()
        return self.filter(
            status=PackageOrder.STATUS_ACTIVE,
            subscription_end_date__isnull=False,
            subscription_end_date__lt=now,
        )


class PackageOrder(models.Model):
    """A package purchase and the subscription it grants."""

    STATUS_PENDING = "pending"
    STATUS_ACTIVE = "active"
    STATUS_EXPIRED = "expired"
    STATUS_CANCELLED = "cancelled"
    STATUS_SUSPENDED = "suspended"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_EXPIRED, "Expired"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_SUSPENDED, "Suspended"),
    ]
    # statuses that switch the subscription off when set by an admin
    DEACTIVATING_STATUSES = (STATUS_CANCELLED, STATUS_SUSPENDED)

    PAYMENT_PENDING = "pending"
    PAYMENT_PROCESSING = "processing"
    PAYMENT_PAID = "paid"
    PAYMENT_FAILED = "failed"
    PAYMENT_REFUNDED = "refunded"
    PAYMENT_CANCELLED = "cancelled"
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PROCESSING, "Processing"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
        (PAYMENT_REFUNDED, "Refunded"),
        (PAYMENT_CANCELLED, "Cancelled"),
    ]
    # payment statuses a gateway success or failure may still move away from
    PAYABLE_STATUSES = (PAYMENT_PENDING, PAYMENT_PROCESSING, PAYMENT_FAILED)
    FAILABLE_STATUSES = (PAYMENT_PENDING, PAYMENT_PROCESSING)

    METHOD_STRIPE = "stripe"
    METHOD_CARD = "card"
    METHOD_BANK_TRANSFER = "bank_transfer"
    METHOD_CASH = "cash"
    METHOD_CHOICES = [
        (METHOD_STRIPE, "Stripe"),
        (METHOD_CARD, "Card"),
        (METHOD_BANK_TRANSFER, "Bank transfer"),
        (METHOD_CASH, "Cash"),
    ]

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="package_orders",
        help_text="Empty for guest checkouts",
    )
    package = models.ForeignKey(
        "catalog.Package",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )

    # Package snapshot taken at checkout
    package_name = models.CharField(max_length=100)
    package_price = models.CharField(max_length=50)
    package_currency = models.CharField(max_length=10)
    package_period = models.CharField(max_length=50)
    package_features = models.JSONField(default=list, blank=True)

    # Customer details captured at checkout
    customer_full_name = models.CharField(max_length=255, blank=True)
    customer_email = models.EmailField(db_index=True)
    customer_phone = models.CharField(max_length=32, blank=True)
    customer_country = models.CharField(max_length=64, blank=True)
    customer_address = models.CharField(max_length=255, blank=True)
    customer_city = models.CharField(max_length=100, blank=True)
    customer_state = models.CharField(max_length=100, blank=True)
    customer_zip_code = models.CharField(max_length=20, blank=True)

    # Payment
    payment_method = models.CharField(max_length=16, choices=METHOD_CHOICES, default=METHOD_STRIPE)
    stripe_session_id = models.CharField(max_length=255, blank=True, db_index=True)
    stripe_payment_intent_id = models.CharField(max_length=255, blank=True, db_index=True)
    stripe_customer_id = models.CharField(max_length=255, blank=True)
    payment_amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_currency = models.CharField(max_length=3, default="USD")
    payment_status = models.CharField(
        max_length=12,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_PENDING,
        db_index=True,
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    transaction_id = models.CharField(max_length=255, blank=True)

    # Subscription
    subscription_start_date = models.DateTimeField(null=True, blank=True)
    subscription_end_date = models.DateTimeField(null=True, blank=True)
    subscription_is_active = models.BooleanField(default=False)
    subscription_auto_renew = models.BooleanField(default=False)
    subscription_renewal_date = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PackageOrderQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status}/{self.payment_status})"

    @property
    def subscription_duration_days(self) -> int | None:
        if self.subscription_start_date and self.subscription_end_date:
            delta = self.subscription_end_date - self.subscription_start_date
            return delta.days + (1 if delta.seconds or delta.microseconds else 0)
        return None

    def is_subscription_active(self, now: datetime.datetime | None = None) -> bool:
        """True only while the flag is set, the term has not ended, the
        payment is in and the order itself is active."""
        if not self.subscription_is_active:
            return False
        now = now or timezone.now()
        if self.subscription_end_date and now > self.subscription_end_date:
            return False
        return self.payment_status == self.PAYMENT_PAID and self.status == self.STATUS_ACTIVE

    def activate_subscription(self, now: datetime.datetime | None = None) -> "PackageOrder":
        """Start the subscription term from ``now`` and mark the order active.

        The term comes from the package period snapshot.  Callers must have
        recorded the payment as paid first.
        """
        if self.payment_status != self.PAYMENT_PAID:
            raise ValueError(f"Order {self.order_number} is not paid; cannot activate")
        start = now or timezone.now()
        self.subscription_is_active = True
        self.subscription_start_date = start
        self.subscription_end_date = parse_period(self.package_period).end_from(start)
        self.status = self.STATUS_ACTIVE
        self.save(update_fields=[
            "subscription_is_active",
            "subscription_start_date",
            "subscription_end_date",
            "status",
            "updated_at",
        ])
        logger.info(
            "Order %s activated until %s",
            self.order_number,
            self.subscription_end_date.isoformat(),
        )
        return self


class OrderSequence(models.Model):
    """Per-month counter behind order numbers (``period`` is ``YYMM``)."""

    period = models.CharField(max_length=4, unique=True)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.period}: {self.last_value}"
