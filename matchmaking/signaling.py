"""
Authorization and relay of WebRTC signaling messages.

The server never looks inside offers, answers or ICE candidates. It only
checks that sender and target are the two participants of an accepted match
connection before forwarding the message to every socket of the target user.
"""

import logging

from channels.db import database_sync_to_async

from .broadcast import SIGNALING_KINDS, BroadcastEvent, EventKind
from .models import MatchConnection

logger = logging.getLogger(__name__)

SIGNALING_MESSAGE_TYPES = frozenset(kind.value for kind in SIGNALING_KINDS)

# offer / answer / candidate, whichever the message carries
PAYLOAD_FIELDS = ("offer", "answer", "candidate")


class SignalingError(Exception):
    """A relay attempt was refused; the message goes back to the sender."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class SignalingAuthorizer:
    def __init__(self, registry, dispatcher, storage):
        self.registry = registry
        self.dispatcher = dispatcher
        self.storage = storage

    async def relay(self, session_id, message):
        """
        Authorize ``message`` from ``session_id`` and forward it.

        Rejections are answered with an ``error`` message to the sender only.
        If the sender's socket has gone away while the connection lookup was
        in flight, the outcome is dropped.

        Returns:
            int: Number of target sockets the message was relayed to
        """
        try:
            sender_id, connection = await self.authorize(session_id, message)
        except SignalingError as e:
            logger.info("Signaling from session %s refused: %s", session_id, e.message)
            await self.dispatcher.send_to_session(
                session_id, {"type": "error", "message": e.message}
            )
            return 0

        data = {"connectionId": str(connection.id)}
        for field in PAYLOAD_FIELDS:
            if field in message:
                data[field] = message[field]
        data["fromUserId"] = sender_id

        event = BroadcastEvent(kind=EventKind(message["type"]), payload=data)
        target_id = str(message["targetUserId"])
        delivered = await self.dispatcher.to_users([target_id], event)
        logger.debug(
            "Relayed %s from %s to %s on %d socket(s)",
            message["type"],
            sender_id,
            target_id,
            delivered,
        )
        return delivered

    async def authorize(self, session_id, message):
        """
        Run the relay checks in order and return ``(sender_id, connection)``.

        Raises:
            SignalingError: On the first check that fails
        """
        session = self.registry.get(session_id)
        if session is None or not session.is_authenticated:
            raise SignalingError("Authentication required for WebRTC signaling")
        sender_id = session.user_id

        target_id = message.get("targetUserId")
        connection_id = message.get("connectionId")
        if not target_id or not connection_id:
            raise SignalingError(
                "Target user ID and connection ID required for WebRTC signaling"
            )

        try:
            connections = await database_sync_to_async(
                self.storage.get_user_connections
            )(sender_id)
        except Exception:
            logger.exception("Error verifying WebRTC authorization for %s", sender_id)
            raise SignalingError("Failed to verify authorization")

        connection = next(
            (c for c in connections if str(c.id) == str(connection_id)), None
        )
        if connection is None:
            raise SignalingError("Connection not found or you are not authorized")

        if connection.other_participant_id(sender_id) != str(target_id):
            raise SignalingError("Target user is not a participant in this connection")

        if connection.status != MatchConnection.Status.ACCEPTED:
            raise SignalingError(
                "Connection must be accepted before initiating voice chat"
            )

        return sender_id, connection
