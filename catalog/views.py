from rest_framework import generics, permissions

from .models import Package
from .serializers import PackageSerializer


class ActivePackageList(generics.ListAPIView):
    """
    GET /api/catalog/packages/active/ -> packages shown on the pricing page
    """
    permission_classes = [permissions.AllowAny]
    serializer_class = PackageSerializer
    pagination_class = None

    def get_queryset(self):
        return Package.objects.active().order_by("display_order", "created_at")
