"""
Production settings for the Gymfolio backend.

Debug off, secure cookies and HSTS.  Refuses to start without the secret
key and the Stripe credentials checkout and the webhook depend on.
"""
from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa

DEBUG = False

for _name in ("DJANGO_SECRET_KEY", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET"):
    if not os.getenv(_name):  # noqa: F405
        raise ImproperlyConfigured(f"{_name} must be set in production")

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_SSL_REDIRECT = True

SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
