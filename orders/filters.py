"""
django-filter FilterSet definitions for the orders app.

``OrderFilter`` backs both the customer's own order list and the admin
list: filter by overall ``status`` and ``payment_status``, and free-text
``search`` over order number, customer email and customer name.
"""
from django_filters import rest_framework as filters

from .models import PackageOrder


class OrderFilter(filters.FilterSet):
    """Filter set for order listings."""

    status = filters.ChoiceFilter(choices=PackageOrder.STATUS_CHOICES)
    payment_status = filters.ChoiceFilter(choices=PackageOrder.PAYMENT_STATUS_CHOICES)
    search = filters.CharFilter(method="filter_search")

    class Meta:
        model = PackageOrder
        fields = []

    def filter_search(self, queryset, name, value):
        return queryset.search(value)
