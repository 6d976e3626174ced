"""
WebSocket consumer for real-time match updates and voice signaling.
"""

import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.core.serializers.json import DjangoJSONEncoder

from .session_auth import resolve_session
from .signaling import SIGNALING_MESSAGE_TYPES

logger = logging.getLogger(__name__)

# Close code used when the heartbeat gives up on a socket
STALE_CLOSE_CODE = 4000


class RealtimeConsumer(AsyncWebsocketConsumer):
    """
    One instance per socket.

    Anonymous sockets are accepted too; they only ever get the handshake
    messages. The consumer is also the socket handle stored in the
    connection registry (``is_open``, ``send_json``, ``ping``, ``terminate``).
    """

    def __init__(self, *args, hub=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.hub = hub
        self.session_id = None
        self.is_open = False

    async def connect(self):
        """
        Handle new WebSocket connection.

        - Accept the socket (origin was checked by OriginHostValidator)
        - Resolve the session cookie to a user, if any
        - Register in the connection registry
        - Send auth result and welcome
        """
        await self.accept()
        self.is_open = True

        result = await database_sync_to_async(resolve_session)(self._header(b"cookie"))

        self.session_id = self.hub.registry.register(self, result.user_id)
        self.hub.heartbeat.ensure_running()

        if result.authenticated:
            logger.info(
                "WebSocket session %s authenticated as user %s",
                self.session_id,
                result.user_id,
            )
            await self.send_json(
                {
                    "type": "auth_success",
                    "message": "Authentication successful",
                    "userId": result.user_id,
                }
            )
        else:
            logger.info("WebSocket session %s connected as anonymous", self.session_id)
            await self.send_json({"type": "auth_failed", "message": result.reason})

        await self.send_json(
            {"type": "welcome", "message": "Connected to GameMatch real-time updates"}
        )

    async def disconnect(self, close_code):
        """
        Handle WebSocket disconnection.

        Args:
            close_code: WebSocket close code
        """
        self.is_open = False
        if self.session_id is not None:
            self.hub.registry.remove(self.session_id)
        logger.info(
            "WebSocket session %s disconnected (code=%s)", self.session_id, close_code
        )

    async def receive(self, text_data=None, bytes_data=None):
        """
        Receive message from WebSocket client.

        Malformed frames are logged and dropped without a reply.
        """
        try:
            data = json.loads(text_data if text_data is not None else bytes_data)
        except (TypeError, ValueError):
            logger.warning("Dropping malformed message from session %s", self.session_id)
            return

        if not isinstance(data, dict):
            logger.warning("Dropping non-object message from session %s", self.session_id)
            return

        if self.session_id is None:
            return

        message_type = data.get("type")
        logger.debug("WebSocket message from %s: %s", self.session_id, message_type)

        if message_type == "ping":
            self.hub.registry.touch(self.session_id)
            await self.send_json({"type": "pong"})
        elif message_type == "pong":
            self.hub.registry.touch(self.session_id)
        elif message_type in SIGNALING_MESSAGE_TYPES:
            await self.hub.signaling.relay(self.session_id, data)

    # ---- socket handle used by the registry, dispatcher and heartbeat ----

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content, cls=DjangoJSONEncoder))

    async def ping(self):
        await self.send_json({"type": "ping"})

    async def terminate(self):
        if not self.is_open:
            return
        self.is_open = False
        await self.close(code=STALE_CLOSE_CODE)

    def _header(self, name):
        for key, value in self.scope.get("headers", []):
            if key == name:
                return value.decode("latin1")
        return None
