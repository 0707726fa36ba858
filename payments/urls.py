"""
URL configuration for the payments app.

Include this module under ``/api/gymfolio/payment/`` in the project-level
URL config.  Point the Stripe dashboard webhook at ``webhook/``.
"""
from django.urls import path
from .views import CheckoutView, PublicKeyView, StripeWebhookView, VerifyPaymentView

urlpatterns = [
    path("checkout/", CheckoutView.as_view(), name="package-checkout"),
    path("verify/<str:session_id>/", VerifyPaymentView.as_view(), name="package-payment-verify"),
    path("public-key/", PublicKeyView.as_view(), name="stripe-public-key"),
    path("webhook/", StripeWebhookView.as_view(), name="stripe-webhook"),
]
