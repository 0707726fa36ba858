from django.urls import path
from .views import (
    AdminOrderList,
    MyOrderList,
    OrderCancel,
    OrderDetail,
    OrderStatusUpdate,
    SubscriptionStatus,
)

urlpatterns = [
    path("orders/", MyOrderList.as_view(), name="order-list"),
    path("orders/<int:pk>/", OrderDetail.as_view(), name="order-detail"),
    path("orders/<int:pk>/status/", OrderStatusUpdate.as_view(), name="order-status"),
    path("orders/<int:pk>/cancel/", OrderCancel.as_view(), name="order-cancel"),
    path("admin/orders/", AdminOrderList.as_view(), name="admin-order-list"),
    path("subscription/status/", SubscriptionStatus.as_view(), name="subscription-status"),
]
