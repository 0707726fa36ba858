# orders/views.py
from rest_framework import generics, permissions, status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from common.pagination import EnvelopePagination, MyOrdersPagination
from .filters import OrderFilter
from .models import PackageOrder
from .serializers import OrderStatusSerializer, PackageOrderSerializer
from . import services

SORT_FIELDS = {"created_at", "order_number", "payment_amount"}
DEFAULT_SORT = "-created_at"


class SortedOrderListMixin:
    """Applies the ``sort`` query parameter (e.g. ``-created_at``)."""

    def sort_queryset(self, qs):
        sort = self.request.query_params.get("sort") or DEFAULT_SORT
        if sort.lstrip("-") not in SORT_FIELDS:
            raise ValidationError(
                {"sort": f"Unsupported sort field. Use one of: {', '.join(sorted(SORT_FIELDS))}"}
            )
        return qs.order_by(sort, "-id")


class MyOrderList(SortedOrderListMixin, generics.ListAPIView):
    """
    GET /api/gymfolio/orders/ -> the authenticated user's package orders
    """
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = PackageOrderSerializer
    filterset_class = OrderFilter
    pagination_class = MyOrdersPagination

    def get_queryset(self):
        qs = PackageOrder.objects.for_user(self.request.user).select_related("package")
        return self.sort_queryset(qs)


class AdminOrderList(SortedOrderListMixin, generics.ListAPIView):
    """
    GET /api/gymfolio/admin/orders/ -> every order, staff only
    """
    permission_classes = [permissions.IsAdminUser]
    serializer_class = PackageOrderSerializer
    filterset_class = OrderFilter
    pagination_class = EnvelopePagination

    def get_queryset(self):
        qs = PackageOrder.objects.select_related("package", "user")
        return self.sort_queryset(qs)


class OrderDetail(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        order = services.get_order_for_requester(pk, request.user)
        return Response({"success": True, "data": PackageOrderSerializer(order).data})


class OrderStatusUpdate(APIView):
    """
    PUT /api/gymfolio/orders/<id>/status/ {"status": "suspended"} -> admin status change
    """
    permission_classes = [permissions.IsAdminUser]

    def put(self, request, pk):
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.get_order(pk)
        order = services.update_order_status(order, serializer.validated_data["status"])
        return Response({
            "success": True,
            "message": "Order status updated successfully",
            "data": PackageOrderSerializer(order).data,
        })


class OrderCancel(APIView):
    """
    POST /api/gymfolio/orders/<id>/cancel/ -> cancel the subscription (owner or staff)
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        order = services.get_order_for_requester(pk, request.user)
        order = services.cancel_subscription(order)
        return Response(
            {
                "success": True,
                "message": "Subscription cancelled successfully",
                "data": PackageOrderSerializer(order).data,
            },
            status=status.HTTP_200_OK,
        )


class SubscriptionStatus(APIView):
    """
    GET /api/gymfolio/subscription/status/ -> the user's subscriptions in force
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        active = services.active_subscriptions(request.user)
        return Response({
            "success": True,
            "data": {
                "active_subscriptions": PackageOrderSerializer(active, many=True).data,
                "count": len(active),
            },
        })
