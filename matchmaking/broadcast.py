"""
Fan-out of real-time events to registered WebSocket sessions.

Delivery is best-effort and at-most-once: there is no event log and no
replay. A socket that is not open at dispatch time simply misses the event;
a client that reconnects resynchronizes through the REST API.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)


class EventKind(str, enum.Enum):
    REQUEST_CREATED = "match_request_created"
    REQUEST_UPDATED = "match_request_updated"
    REQUEST_DELETED = "match_request_deleted"
    CONNECTION_CREATED = "match_connection_created"
    CONNECTION_UPDATED = "match_connection_updated"
    MESSAGE_CREATED = "new_message"
    # signaling relays
    WEBRTC_OFFER = "webrtc_offer"
    WEBRTC_ANSWER = "webrtc_answer"
    WEBRTC_ICE_CANDIDATE = "webrtc_ice_candidate"


SIGNALING_KINDS = (
    EventKind.WEBRTC_OFFER,
    EventKind.WEBRTC_ANSWER,
    EventKind.WEBRTC_ICE_CANDIDATE,
)


@dataclass(frozen=True)
class BroadcastEvent:
    kind: EventKind
    payload: Any
    note: Optional[str] = None

    def to_message(self):
        message = {"type": EventKind(self.kind).value, "data": self.payload}
        if self.note is not None:
            message["message"] = self.note
        return message


class BroadcastDispatcher:
    """Delivers events to every authenticated session or to chosen users."""

    def __init__(self, registry):
        self.registry = registry

    async def to_all(self, event: BroadcastEvent) -> int:
        """
        Send ``event`` to every open session bound to a user.

        Anonymous sessions are skipped.

        Returns:
            int: Number of sockets the event was written to
        """
        targets = [s for s in self.registry.sessions() if s.is_authenticated]
        return await self._fan_out(targets, event.to_message())

    async def to_users(self, user_ids, event: BroadcastEvent) -> int:
        """
        Send ``event`` to every open session of the given users.

        A user with several sockets (devices, tabs) receives it on each.
        """
        targets = self.registry.sessions_for_users(user_ids)
        return await self._fan_out(targets, event.to_message())

    async def send_to_session(self, session_id, message) -> bool:
        """Send a raw protocol message to one session, if it is still open."""
        session = self.registry.get(session_id)
        if session is None:
            return False
        return await self._deliver(session, message)

    async def _fan_out(self, sessions, message) -> int:
        delivered = 0
        for session in sessions:
            if await self._deliver(session, message):
                delivered += 1
        logger.debug(
            "Dispatched %s to %d/%d sessions",
            message.get("type"),
            delivered,
            len(sessions),
        )
        return delivered

    async def _deliver(self, session, message) -> bool:
        # Re-checked per session: an earlier send may have suspended long
        # enough for this socket to close or be evicted.
        if self.registry.get(session.session_id) is not session:
            return False
        if not session.is_open:
            return False
        try:
            await session.socket.send_json(message)
        except Exception as e:
            logger.warning(
                "Failed to send %s to session %s: %s",
                message.get("type"),
                session.session_id,
                e,
            )
            self.registry.remove(session.session_id)
            return False
        return True
