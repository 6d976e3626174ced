"""
Periodic liveness check for registered WebSocket sessions.

Every ``interval`` seconds each session is either probed with a ping or, if
it has not acknowledged anything for longer than ``timeout`` seconds,
terminated and evicted. Eviction is final; a half-closed socket that missed
the window is assumed dead.
"""

import asyncio
import logging

from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)


class HeartbeatMonitor:
    def __init__(self, registry, interval=30.0, timeout=40.0, enabled=True):
        if timeout <= interval:
            raise ImproperlyConfigured(
                "Heartbeat timeout must be longer than the heartbeat interval "
                f"(interval={interval}, timeout={timeout})"
            )
        self.registry = registry
        self.interval = interval
        self.timeout = timeout
        self.enabled = enabled
        self._task = None

    @property
    def running(self):
        return self._task is not None and not self._task.done()

    def ensure_running(self):
        """
        Start the periodic task on the running event loop if it isn't already.

        A task left behind on a loop that has since been replaced is
        abandoned and a fresh one is started.
        """
        if not self.enabled:
            return
        loop = asyncio.get_running_loop()
        if self.running and self._task.get_loop() is loop:
            return
        self._task = loop.create_task(self._run())
        logger.info(
            "Heartbeat started (interval=%ss, timeout=%ss)", self.interval, self.timeout
        )

    async def stop(self):
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("Heartbeat tick failed")

    async def tick(self):
        """
        Run one heartbeat pass over a snapshot of the registry.

        Returns:
            int: Number of sessions evicted as stale
        """
        now = self.registry.clock()
        evicted = 0

        for session in self.registry.sessions():
            if self.registry.get(session.session_id) is not session:
                continue

            if now - session.last_liveness_ack > self.timeout:
                logger.info(
                    "Removing stale WebSocket session %s (user=%s)",
                    session.session_id,
                    session.user_id or "anonymous",
                )
                self.registry.remove(session.session_id)
                evicted += 1
                try:
                    await session.socket.terminate()
                except Exception as e:
                    logger.warning(
                        "Error terminating stale session %s: %s", session.session_id, e
                    )
            elif session.is_open:
                try:
                    await session.socket.ping()
                except Exception as e:
                    logger.warning(
                        "Failed to ping session %s: %s", session.session_id, e
                    )

        return evicted
