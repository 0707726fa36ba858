"""
Serializers for the payments app.

These validate checkout requests at the API boundary; pricing, order
creation and the Stripe call happen in ``payments.checkout``.
"""
from __future__ import annotations

from rest_framework import serializers


class CustomerInfoInputSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    email = serializers.EmailField(max_length=254)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    country = serializers.CharField(max_length=64, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    zip_code = serializers.CharField(max_length=20, required=False, allow_blank=True)


class CheckoutRequestSerializer(serializers.Serializer):
    """Serializer for initiating a package checkout."""

    package_id = serializers.IntegerField(
        min_value=1,
        error_messages={"required": "Package ID is required", "null": "Package ID is required"},
    )
    customer_info = CustomerInfoInputSerializer(
        error_messages={"required": "Customer information is required", "null": "Customer information is required"},
    )
