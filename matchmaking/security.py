"""
Handshake guard for the WebSocket endpoint.

Rejects any upgrade whose ``Origin`` host is not exactly the ``Host`` the
request was sent to, which blocks cross-site WebSocket hijacking with the
victim's session cookie.
"""

import logging
from urllib.parse import urlsplit

from channels.security.websocket import WebsocketDenier

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443}


def origin_host(origin):
    """
    Return the ``host[:port]`` of an origin URL the way a browser reports it.

    The hostname is lower-cased and the scheme's default port is dropped.
    Returns None when ``origin`` is not an absolute URL with a host.
    """
    try:
        parsed = urlsplit(origin)
        port = parsed.port
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None

    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != DEFAULT_PORTS.get(parsed.scheme.lower()):
        host = f"{host}:{port}"
    return host


def is_same_origin(origin, host):
    if not origin or not host:
        return False
    return origin_host(origin) == host


class OriginHostValidator:
    """
    ASGI middleware that only lets a WebSocket through when
    ``Origin``'s host equals the ``Host`` header.
    """

    def __init__(self, application):
        self.application = application

    async def __call__(self, scope, receive, send):
        if scope["type"] != "websocket":
            raise ValueError(
                "You cannot use OriginHostValidator on a non-WebSocket connection"
            )

        headers = dict(scope.get("headers", []))
        origin = headers.get(b"origin", b"").decode("latin1")
        host = headers.get(b"host", b"").decode("latin1")

        if is_same_origin(origin, host):
            return await self.application(scope, receive, send)

        if not origin or not host:
            logger.warning("WebSocket connection rejected: Missing origin or host")
        else:
            logger.warning(
                "WebSocket connection rejected: Origin %s does not match host %s",
                origin,
                host,
            )
        denier = WebsocketDenier()
        return await denier(scope, receive, send)
