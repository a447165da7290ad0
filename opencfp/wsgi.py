"""WSGI entry point for the opencfp project."""

import os

from django.core.wsgi import get_wsgi_application


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "opencfp.settings")

application = get_wsgi_application()
