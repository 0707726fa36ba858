from rest_framework.exceptions import NotFound

from common.exceptions import ConflictError


class OrderNotFound(NotFound):
    default_detail = "Order not found."
    default_code = "order_not_found"


class AlreadyCancelled(ConflictError):
    default_detail = "Subscription is already cancelled."
    default_code = "already_cancelled"
