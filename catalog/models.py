"""
Database models for the catalog app.

A ``Package`` is a purchasable gym membership tier.  Price, currency and
period are free text ("13,000", "Rs", "3 months") because they are shown
verbatim on the pricing page.
"""
from __future__ import annotations

from django.db import models


class PackageQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


class Package(models.Model):
    """A membership package offered on the pricing page."""

    THEME_LIGHT = "light"
    THEME_DARK = "dark"
    THEME_CHOICES = [
        (THEME_LIGHT, "Light"),
        (THEME_DARK, "Dark"),
    ]

    name = models.CharField(max_length=100)
    price = models.CharField(max_length=50, help_text="Display price, e.g. '13,000'")
    currency = models.CharField(max_length=10, default="PKR")
    period = models.CharField(max_length=50, help_text="Billing period, e.g. '3 months'")
    features = models.JSONField(default=list, blank=True)
    theme = models.CharField(max_length=8, choices=THEME_CHOICES, default=THEME_LIGHT)
    badge = models.CharField(max_length=50, blank=True)
    supporting_text = models.CharField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    display_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PackageQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["is_active", "display_order"], name="catalog_package_active_idx"),
        ]
        ordering = ["display_order", "created_at"]

    def __str__(self) -> str:
        return f"{self.name} ({self.currency} {self.price} / {self.period})"
