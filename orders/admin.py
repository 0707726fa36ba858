"""
Django admin registration for the orders app.

Orders are created by checkout and never deleted.  Only ``status`` and
``notes`` are editable here; a status change goes through
``services.update_order_status`` so cancelling or suspending switches the
subscription off the same way the API does.
"""
from django.contrib import admin

from . import services
from .models import OrderSequence, PackageOrder

EDITABLE_FIELDS = ("status", "notes")


@admin.register(PackageOrder)
class PackageOrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "customer_email",
        "package_name",
        "payment_amount",
        "payment_currency",
        "payment_status",
        "status",
        "subscription_end_date",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_currency", "created_at")
    search_fields = ("order_number", "customer_email", "customer_full_name", "stripe_session_id")
    ordering = ("-created_at",)
    readonly_fields = (
        "order_number",
        "user",
        "package",
        "package_name",
        "package_price",
        "package_currency",
        "package_period",
        "package_features",
        "customer_full_name",
        "customer_email",
        "customer_phone",
        "customer_country",
        "customer_address",
        "customer_city",
        "customer_state",
        "customer_zip_code",
        "payment_method",
        "stripe_session_id",
        "stripe_payment_intent_id",
        "stripe_customer_id",
        "payment_amount",
        "payment_currency",
        "payment_status",
        "paid_at",
        "transaction_id",
        "subscription_start_date",
        "subscription_end_date",
        "subscription_is_active",
        "subscription_auto_renew",
        "subscription_renewal_date",
        "metadata",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def save_model(self, request, obj, form, change):
        changed = [name for name in form.changed_data if name in EDITABLE_FIELDS]
        if "status" in changed:
            services.update_order_status(obj, obj.status)
            changed.remove("status")
        if changed:
            obj.save(update_fields=[*changed, "updated_at"])


@admin.register(OrderSequence)
class OrderSequenceAdmin(admin.ModelAdmin):
    list_display = ("period", "last_value", "updated_at")
    ordering = ("-period",)
    readonly_fields = ("period", "last_value", "updated_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
