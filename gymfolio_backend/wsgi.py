"""
WSGI entry point for the Gymfolio backend.

The default settings module is the development configuration; production
deployments set DJANGO_SETTINGS_MODULE explicitly.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "gymfolio_backend.settings.dev")

application = get_wsgi_application()
