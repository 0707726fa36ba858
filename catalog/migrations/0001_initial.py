"""
Initial migration for the catalog app.

Creates the Package table holding the display price, currency, period
and feature list of each membership tier.
"""
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Package",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("price", models.CharField(help_text="Display price, e.g. '13,000'", max_length=50)),
                ("currency", models.CharField(default="PKR", max_length=10)),
                ("period", models.CharField(help_text="Billing period, e.g. '3 months'", max_length=50)),
                ("features", models.JSONField(blank=True, default=list)),
                (
                    "theme",
                    models.CharField(
                        choices=[("light", "Light"), ("dark", "Dark")],
                        default="light",
                        max_length=8,
                    ),
                ),
                ("badge", models.CharField(blank=True, max_length=50)),
                ("supporting_text", models.CharField(blank=True, max_length=500)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("display_order", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["display_order", "created_at"],
                "indexes": [
                    models.Index(fields=["is_active", "display_order"], name="catalog_package_active_idx"),
                ],
            },
        ),
    ]
