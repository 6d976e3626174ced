import time

from .broadcast import BroadcastDispatcher
from .connections import ConnectionRegistry
from .heartbeat import HeartbeatMonitor
from .signaling import SignalingAuthorizer


class RealtimeHub:
    """
    Owner of the real-time components.

    One hub is created per process by ``MatchmakingConfig.ready()`` and
    handed to the WebSocket consumer and the REST views; tests build their
    own.
    """

    def __init__(
        self,
        storage,
        heartbeat_interval=30.0,
        heartbeat_timeout=40.0,
        heartbeat_enabled=True,
        clock=time.monotonic,
    ):
        self.storage = storage
        self.registry = ConnectionRegistry(clock=clock)
        self.dispatcher = BroadcastDispatcher(self.registry)
        self.heartbeat = HeartbeatMonitor(
            self.registry,
            interval=heartbeat_interval,
            timeout=heartbeat_timeout,
            enabled=heartbeat_enabled,
        )
        self.signaling = SignalingAuthorizer(self.registry, self.dispatcher, storage)

    @classmethod
    def from_settings(cls, storage):
        from django.conf import settings

        options = getattr(settings, "REALTIME", {})
        return cls(
            storage,
            heartbeat_interval=options.get("HEARTBEAT_INTERVAL", 30.0),
            heartbeat_timeout=options.get("HEARTBEAT_TIMEOUT", 40.0),
            heartbeat_enabled=options.get("HEARTBEAT_ENABLED", True),
        )
