"""Background timer service that delivers self-scheduled actor wake-ups."""

from __future__ import annotations

import asyncio
from typing import Optional, Set

from ...errors import StorageFailure
from ...logging_config import logger
from .runtime import ActorRuntime


class AlarmScheduler:
    """Polls persisted alarms and dispatches due ones through the actor runtime."""

    def __init__(self, runtime: ActorRuntime, poll_interval_seconds: float = 5.0) -> None:
        self._runtime = runtime
        self._poll_interval = poll_interval_seconds
        self._task: Optional[asyncio.Task[None]] = None
        self._running = False
        self._in_flight: Set[str] = set()
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        async with self._lock:
            if self._task and not self._task.done():
                return
            loop = asyncio.get_running_loop()
            self._running = True
            self._task = loop.create_task(self._run(), name="actor-alarm-scheduler")
            logger.info("Actor alarm scheduler started", extra={"interval": self._poll_interval})

    async def stop(self) -> None:
        async with self._lock:
            self._running = False
            if self._task:
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
                self._task = None
                logger.info("Actor alarm scheduler stopped")

    async def _run(self) -> None:
        try:
            while self._running:
                await self.poll_once()
                await asyncio.sleep(self._poll_interval)
        except asyncio.CancelledError:  # pragma: no cover - shutdown path
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Actor alarm scheduler loop crashed", extra={"error": str(exc)})

    async def poll_once(self) -> int:
        """Fire every alarm due now; returns how many handlers ran."""
        now = self._runtime.clock()
        try:
            due = self._runtime.store.fetch_due_alarms(now)
        except StorageFailure as exc:
            logger.warning("alarm poll failed", extra={"error": str(exc)})
            return 0

        dispatches = []
        for actor_key, fire_at in due:
            if actor_key in self._in_flight:
                continue
            self._in_flight.add(actor_key)
            dispatches.append(self._dispatch(actor_key, fire_at))
        if not dispatches:
            return 0
        results = await asyncio.gather(*dispatches)
        return sum(1 for fired in results if fired)

    async def _dispatch(self, actor_key: str, fire_at: int) -> bool:
        try:
            return await self._runtime.fire_alarm(actor_key, fire_at)
        except StorageFailure as exc:
            logger.warning("alarm dispatch failed", extra={"actor": actor_key, "error": str(exc)})
            return False
        finally:
            self._in_flight.discard(actor_key)


__all__ = ["AlarmScheduler"]
