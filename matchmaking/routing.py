"""
WebSocket URL routing configuration.

The consumer needs the process's RealtimeHub, so the patterns are built
around a hub instead of living in a module-level list.
"""
from django.urls import path
from channels.routing import URLRouter

from . import consumers
from .security import OriginHostValidator


def build_websocket_urlpatterns(hub):
    return [
        # Real-time updates endpoint
        # URL format: ws://domain/ws
        path("ws", consumers.RealtimeConsumer.as_asgi(hub=hub)),
    ]


def build_websocket_application(hub):
    """Origin check in front of the URL router."""
    return OriginHostValidator(URLRouter(build_websocket_urlpatterns(hub)))
