# orders/serializers.py
from rest_framework import serializers
from .models import PackageOrder


class PackageDetailsSerializer(serializers.Serializer):
    """Package snapshot copied onto the order at checkout."""

    name = serializers.CharField(source="package_name")
    price = serializers.CharField(source="package_price")
    currency = serializers.CharField(source="package_currency")
    period = serializers.CharField(source="package_period")
    features = serializers.ListField(source="package_features", child=serializers.CharField())


class CustomerInfoSerializer(serializers.Serializer):
    full_name = serializers.CharField(source="customer_full_name")
    email = serializers.EmailField(source="customer_email")
    phone = serializers.CharField(source="customer_phone")
    country = serializers.CharField(source="customer_country")
    address = serializers.CharField(source="customer_address")
    city = serializers.CharField(source="customer_city")
    state = serializers.CharField(source="customer_state")
    zip_code = serializers.CharField(source="customer_zip_code")


class PaymentSerializer(serializers.Serializer):
    method = serializers.CharField(source="payment_method")
    stripe_session_id = serializers.CharField()
    stripe_payment_intent_id = serializers.CharField()
    amount = serializers.DecimalField(source="payment_amount", max_digits=12, decimal_places=2)
    currency = serializers.CharField(source="payment_currency")
    status = serializers.CharField(source="payment_status")
    paid_at = serializers.DateTimeField()
    transaction_id = serializers.CharField()


class SubscriptionSerializer(serializers.Serializer):
    start_date = serializers.DateTimeField(source="subscription_start_date")
    end_date = serializers.DateTimeField(source="subscription_end_date")
    is_active = serializers.BooleanField(source="subscription_is_active")
    auto_renew = serializers.BooleanField(source="subscription_auto_renew")
    renewal_date = serializers.DateTimeField(source="subscription_renewal_date")
    duration_days = serializers.IntegerField(source="subscription_duration_days")


class PackageOrderSerializer(serializers.ModelSerializer):
    """Read-only order representation with nested sections."""

    user_id = serializers.IntegerField(read_only=True)
    package_id = serializers.IntegerField(read_only=True)
    package_details = PackageDetailsSerializer(source="*", read_only=True)
    customer_info = CustomerInfoSerializer(source="*", read_only=True)
    payment = PaymentSerializer(source="*", read_only=True)
    subscription = SubscriptionSerializer(source="*", read_only=True)
    is_subscription_active = serializers.SerializerMethodField()

    class Meta:
        model = PackageOrder
        fields = [
            "id",
            "order_number",
            "user_id",
            "package_id",
            "package_details",
            "customer_info",
            "payment",
            "subscription",
            "status",
            "is_subscription_active",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_is_subscription_active(self, obj) -> bool:
        return obj.is_subscription_active()


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=PackageOrder.STATUS_CHOICES,
        error_messages={
            "invalid_choice": "Invalid status. Must be one of: "
            + ", ".join(value for value, _ in PackageOrder.STATUS_CHOICES),
            "required": "Status is required",
        },
    )
