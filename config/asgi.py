"""ASGI config for the kennel booking project.

Exposes the ASGI application for servers such as uvicorn or daphne.
"""

import os

from django.core.asgi import get_asgi_application

# Use the development settings by default. Production servers should set
# DJANGO_SETTINGS_MODULE accordingly.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
