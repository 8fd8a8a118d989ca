"""
ASGI entry point: the Django HTTP API plus the ``/ws/updates/`` socket
that tells clients to reload the roster after a bulk replace.

Settings must be configured and Django set up before the consumer module
is imported, since it pulls in the roster service and its models.
"""
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "pharmaguard.settings")

import django  # noqa: E402
django.setup()  # noqa: E402

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402
from django.core.asgi import get_asgi_application  # noqa: E402
from django.urls import path  # noqa: E402

from portal.realtime.consumers import UpdatesConsumer  # noqa: E402

django_asgi_app = get_asgi_application()

websocket_urlpatterns = [
    path("ws/updates/", UpdatesConsumer.as_asgi()),
]

# No session auth on the socket: it only carries public refresh notices.
application = ProtocolTypeRouter({
    "http": django_asgi_app,
    "websocket": AllowedHostsOriginValidator(URLRouter(websocket_urlpatterns)),
})
