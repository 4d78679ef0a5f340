"""
WSGI config for the Django application.

The project is served over ASGI (see asgi.py) because the realtime relay
needs websockets. WSGI is kept for running the REST gateway alone behind a
traditional server.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
