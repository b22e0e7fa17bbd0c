"""
WSGI config for the Django application.

The API is served through ASGI (see asgi.py); this callable is for WSGI
servers such as gunicorn.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
