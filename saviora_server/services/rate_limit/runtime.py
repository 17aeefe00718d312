"""Hosts rate limiter actors and serializes every call per actor key."""

from __future__ import annotations

import asyncio
import threading
import weakref
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from ...config import Settings, get_settings
from ...logging_config import logger
from ...models import RateLimitRequest
from ...utils.timestamps import epoch_ms
from .actor import ActorResult, Clock, RateLimiterActor, ViewSink
from .storage import ActorStateStore, ActorStorage


class ActorRuntime:
    """Key-addressed actor host.

    Requests and alarms for the same key share one ``asyncio.Lock`` so they run
    strictly one after another; different keys never wait on each other.
    """

    def __init__(
        self,
        store: ActorStateStore,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = epoch_ms,
        view_sink: Optional[ViewSink] = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._clock = clock
        self._view_sink = view_sink
        # Entries vanish once no caller holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._global_lock = threading.Lock()

    @property
    def store(self) -> ActorStateStore:
        return self._store

    @property
    def clock(self) -> Clock:
        return self._clock

    def _lock_for(self, key: str) -> asyncio.Lock:
        with self._global_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[key] = lock
            return lock

    @property
    def active_keys(self) -> int:
        return len(self._locks)

    def actor_for(self, key: str) -> RateLimiterActor:
        return RateLimiterActor(
            ActorStorage(self._store, key),
            stale_buffer_ms=self._settings.rate_limit_stale_buffer_ms,
            alarm_interval_ms=self._settings.actor_alarm_interval_ms,
            clock=self._clock,
            view_sink=self._view_sink,
        )

    async def evaluate(self, key: str, request: RateLimitRequest) -> ActorResult:
        async with self._lock_for(key):
            return await run_in_threadpool(self.actor_for(key).evaluate, request)

    async def hit(self, key: str, *, max_requests: Optional[int] = None, window_ms: Optional[int] = None) -> ActorResult:
        request = RateLimitRequest(
            action="hit",
            max_requests=max_requests or self._settings.rate_limit_max_requests,
            window_ms=window_ms or self._settings.rate_limit_window_ms,
        )
        return await self.evaluate(key, request)

    async def fire_alarm(self, key: str, scheduled_for: int) -> bool:
        """Run the alarm handler if the alarm is still the one that came due."""
        async with self._lock_for(key):
            if not await run_in_threadpool(self._store.claim_alarm, key, scheduled_for):
                logger.debug("alarm superseded before firing", extra={"actor": key})
                return False
            await run_in_threadpool(self.actor_for(key).alarm)
            return True


__all__ = ["ActorRuntime"]
