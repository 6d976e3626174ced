"""
ASGI config for the gamematch project.

It exposes the ASGI callable as a module-level variable named ``application``.

For more information on this file, see
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "gamematch.settings")

# Initialize the Django ASGI application
# Django must be initialized before importing routing to ensure the AppRegistry is populated.
django_asgi_app = get_asgi_application()

# Django must be initialized before importing channels (E402 expected)
from django.apps import apps  # noqa: E402
from channels.routing import ProtocolTypeRouter  # noqa: E402
from matchmaking.routing import build_websocket_application  # noqa: E402

hub = apps.get_app_config("matchmaking").hub

# ASGI application, handling HTTP and WebSocket
application = ProtocolTypeRouter(
    {
        # Django's ASGI application handles traditional HTTP requests.
        "http": django_asgi_app,
        # Real-time updates with origin/host verification and cookie sessions
        "websocket": build_websocket_application(hub),
    }
)
