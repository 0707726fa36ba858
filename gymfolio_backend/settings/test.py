"""
Test settings: in-memory SQLite, local-memory cache and eager Celery.

The payment gateway is never contacted from tests; fixtures swap in a fake.
"""
from .base import *  # noqa

DEBUG = False
TIME_ZONE = "Asia/Karachi"
SECRET_KEY = "test-secret"
ALLOWED_HOSTS = ["*"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {**REST_FRAMEWORK, "DEFAULT_THROTTLE_CLASSES": []}  # noqa: F405

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

STRIPE_SECRET_KEY = "sk_test_dummy"
STRIPE_PUBLISHABLE_KEY = "pk_test_dummy"
STRIPE_WEBHOOK_SECRET = "whsec_test_dummy"
FRONTEND_ORIGIN = "https://gymfolio.test"
CHECKOUT_SUCCESS_URL = f"{FRONTEND_ORIGIN}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}"
CHECKOUT_CANCEL_URL = f"{FRONTEND_ORIGIN}/checkout/cancel"
