"""
In-memory registry of live WebSocket sessions.

Each accepted socket gets one ``ConnectionSession`` keyed by an opaque,
randomly generated session id. The registry is the only shared mutable state
of the real-time layer; everything runs on one event loop, so the only hazard
is mutation while iterating, which ``sessions()`` and ``for_each()`` avoid by
working on a snapshot.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ConnectionSession:
    session_id: str
    socket: Any
    user_id: Optional[str] = None
    last_liveness_ack: float = 0.0

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_open(self) -> bool:
        return bool(getattr(self.socket, "is_open", False))


class ConnectionRegistry:
    """
    Mapping of session id -> ConnectionSession.

    The socket object only needs ``is_open``, ``send_json()``, ``ping()`` and
    ``terminate()``; ``RealtimeConsumer`` provides them.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._sessions: Dict[str, ConnectionSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id) -> bool:
        return session_id in self._sessions

    def register(self, socket, user_id=None) -> str:
        """
        Add a socket and return its new session id.

        Args:
            socket: The live socket handle
            user_id: Authenticated user id, or None for anonymous sockets

        Returns:
            str: Session id, never reused for another socket
        """
        session_id = secrets.token_urlsafe(16)
        while session_id in self._sessions:
            session_id = secrets.token_urlsafe(16)

        self._sessions[session_id] = ConnectionSession(
            session_id=session_id,
            socket=socket,
            user_id=str(user_id) if user_id is not None else None,
            last_liveness_ack=self.clock(),
        )
        logger.debug(
            "Registered session %s (user=%s), %d live",
            session_id,
            user_id or "anonymous",
            len(self._sessions),
        )
        return session_id

    def touch(self, session_id) -> bool:
        session = self._sessions.get(session_id)
        if session is None:
            return False
        session.last_liveness_ack = self.clock()
        return True

    def remove(self, session_id) -> Optional[ConnectionSession]:
        """Drop a session. Removing an unknown or already removed id is a no-op."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.debug(
                "Removed session %s (user=%s), %d live",
                session_id,
                session.user_id or "anonymous",
                len(self._sessions),
            )
        return session

    def get(self, session_id) -> Optional[ConnectionSession]:
        return self._sessions.get(session_id)

    def sessions(self) -> List[ConnectionSession]:
        return list(self._sessions.values())

    def sessions_for_users(self, user_ids) -> List[ConnectionSession]:
        wanted = {str(user_id) for user_id in user_ids}
        return [s for s in self._sessions.values() if s.user_id in wanted]

    def for_each(self, fn: Callable[[ConnectionSession], Any]) -> None:
        # Entries removed by an earlier callback are not visited.
        for session in self.sessions():
            if self._sessions.get(session.session_id) is session:
                fn(session)
