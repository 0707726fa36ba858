"""
Payments app package for the Gymfolio backend.

This package turns catalog packages into Stripe Checkout sessions and
reconciles Stripe's payment outcome back onto orders: the synchronous
verify call made when a customer returns from checkout, the signed
webhook stream, and a sweep for checkouts nobody came back from.  See
payments/views.py for API details.
"""
