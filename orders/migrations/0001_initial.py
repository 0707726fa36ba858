"""
Initial migration for the orders app.

Creates the PackageOrder table (package snapshot, customer details,
payment record and subscription term) and the per-month OrderSequence
counter used to issue order numbers.
"""
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="OrderSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period", models.CharField(max_length=4, unique=True)),
                ("last_value", models.PositiveIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="PackageOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_number", models.CharField(editable=False, max_length=20, unique=True)),
                ("package_name", models.CharField(max_length=100)),
                ("package_price", models.CharField(max_length=50)),
                ("package_currency", models.CharField(max_length=10)),
                ("package_period", models.CharField(max_length=50)),
                ("package_features", models.JSONField(blank=True, default=list)),
                ("customer_full_name", models.CharField(blank=True, max_length=255)),
                ("customer_email", models.EmailField(db_index=True, max_length=254)),
                ("customer_phone", models.CharField(blank=True, max_length=32)),
                ("customer_country", models.CharField(blank=True, max_length=64)),
                ("customer_address", models.CharField(blank=True, max_length=255)),
                ("customer_city", models.CharField(blank=True, max_length=100)),
                ("customer_state", models.CharField(blank=True, max_length=100)),
                ("customer_zip_code", models.CharField(blank=True, max_length=20)),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("stripe", "Stripe"),
                            ("card", "Card"),
                            ("bank_transfer", "Bank transfer"),
                            ("cash", "Cash"),
                        ],
                        default="stripe",
                        max_length=16,
                    ),
                ),
                ("stripe_session_id", models.CharField(blank=True, db_index=True, max_length=255)),
                ("stripe_payment_intent_id", models.CharField(blank=True, db_index=True, max_length=255)),
                ("stripe_customer_id", models.CharField(blank=True, max_length=255)),
                ("payment_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("payment_currency", models.CharField(default="USD", max_length=3)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("paid", "Paid"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=12,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("transaction_id", models.CharField(blank=True, max_length=255)),
                ("subscription_start_date", models.DateTimeField(blank=True, null=True)),
                ("subscription_end_date", models.DateTimeField(blank=True, null=True)),
                ("subscription_is_active", models.BooleanField(default=False)),
                ("subscription_auto_renew", models.BooleanField(default=False)),
                ("subscription_renewal_date", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("active", "Active"),
                            ("expired", "Expired"),
                            ("cancelled", "Cancelled"),
                            ("suspended", "Suspended"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=12,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "package",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="catalog.package",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        help_text="Empty for guest checkouts",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="package_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
                    models.Index(fields=["-created_at"], name="orders_created_idx"),
                ],
            },
        ),
    ]
