"""Per-identity rate limiting actors."""

from __future__ import annotations

from typing import Optional

from ...config import get_settings
from ..dialogue import get_dialogue_store
from .actor import RateLimiterActor
from .alarms import AlarmScheduler
from .runtime import ActorRuntime
from .storage import ActorStateStore, ActorStorage


VIEWS_COUNTER_KEY = "views-counter"

_actor_runtime: Optional[ActorRuntime] = None
_alarm_scheduler: Optional[AlarmScheduler] = None


def get_actor_runtime() -> ActorRuntime:
    global _actor_runtime
    if _actor_runtime is None:
        settings = get_settings()
        _actor_runtime = ActorRuntime(
            ActorStateStore(settings.actor_database_path),
            settings=settings,
            view_sink=get_dialogue_store(),
        )
    return _actor_runtime


def get_alarm_scheduler() -> AlarmScheduler:
    global _alarm_scheduler
    if _alarm_scheduler is None:
        _alarm_scheduler = AlarmScheduler(
            get_actor_runtime(),
            poll_interval_seconds=get_settings().actor_alarm_poll_seconds,
        )
    return _alarm_scheduler


__all__ = [
    "ActorRuntime",
    "ActorStateStore",
    "ActorStorage",
    "AlarmScheduler",
    "RateLimiterActor",
    "VIEWS_COUNTER_KEY",
    "get_actor_runtime",
    "get_alarm_scheduler",
]
