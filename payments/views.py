"""
Views for the payments app.

This module exposes endpoints for starting a package checkout, verifying
the payment when the customer returns from Stripe, publishing the Stripe
publishable key and receiving Stripe webhooks.  Checkout and verification
are open to guests; the webhook relies solely on signature verification.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import permissions, status, views
from rest_framework.response import Response

from orders.serializers import PackageOrderSerializer
from . import gateway as gateway_module
from .checkout import start_checkout
from .gateway import SignatureVerificationFailed, WebhookNotConfigured
from .reconciliation import handle_gateway_event, verify_payment
from .serializers import CheckoutRequestSerializer

logger = logging.getLogger(__name__)


class CheckoutView(views.APIView):
    """Start a Stripe Checkout session for a catalog package."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user if request.user.is_authenticated else None
        result = start_checkout(
            user,
            serializer.validated_data["package_id"],
            serializer.validated_data["customer_info"],
        )
        return Response({
            "success": True,
            "message": "Checkout session created",
            "checkout_url": result.checkout_url,
            "checkout_session_id": result.checkout_session_id,
            "order_number": result.order_number,
        })


class VerifyPaymentView(views.APIView):
    """Reconcile a checkout session the customer has just returned from."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, session_id):
        result = verify_payment(session_id)
        return Response({
            "success": True,
            "paid": result.paid,
            "message": "Payment verified" if result.paid else "Payment not completed",
            "data": PackageOrderSerializer(result.order).data,
        })


class PublicKeyView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        public_key = settings.STRIPE_PUBLISHABLE_KEY
        if not public_key:
            return Response(
                {"success": False, "message": "Stripe public key not configured"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response({"success": True, "message": "OK", "public_key": public_key})


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(views.APIView):
    """Handle incoming Stripe webhook events."""

    permission_classes = []  # no authentication
    authentication_classes = []
    throttle_classes = []

    def post(self, request):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")
        gateway = gateway_module.get_gateway()
        try:
            event = gateway.construct_event(payload, sig_header)
        except WebhookNotConfigured:
            logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not set")
            return JsonResponse(
                {"success": False, "message": "Webhook secret not configured"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except SignatureVerificationFailed as exc:
            return HttpResponse(f"Webhook Error: {exc.detail}", status=status.HTTP_400_BAD_REQUEST)

        try:
            handle_gateway_event(event)
        except Exception:
            logger.exception("Error handling Stripe webhook %s (%s)", event.type, event.id)
            return JsonResponse(
                {"success": False, "message": "Webhook handler failed"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return JsonResponse({"received": True})
