from rest_framework import serializers
from .models import Package


class PackageSerializer(serializers.ModelSerializer):
    """Public, read-only view of a catalog package."""

    class Meta:
        model = Package
        fields = [
            "id",
            "name",
            "price",
            "currency",
            "period",
            "features",
            "theme",
            "badge",
            "supporting_text",
            "display_order",
        ]
        read_only_fields = fields
