"""
WSGI entry point for deployments that only serve the HTTP API.

WebSocket refresh pushes need the ASGI application in ``asgi.py``.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pharmaguard.settings')

application = get_wsgi_application()
