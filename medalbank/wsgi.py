"""WSGI entrypoint for the MedalBank API."""

import os

from django.core.wsgi import get_wsgi_application


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "medalbank.settings")

application = get_wsgi_application()
