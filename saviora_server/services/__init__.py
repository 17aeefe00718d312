"""Service layer components."""

from .dialogue import DialogueStore, get_dialogue_store
from .interpretation import (
    BlockDigest,
    DialogueAnalyst,
    InterpretationPipeline,
    get_dialogue_analyst,
    get_interpretation_pipeline,
)
from .rate_limit import (
    VIEWS_COUNTER_KEY,
    ActorRuntime,
    ActorStateStore,
    AlarmScheduler,
    RateLimiterActor,
    get_actor_runtime,
    get_alarm_scheduler,
)
from .summarization import SummaryEngine, get_summary_engine, schedule_summary_refresh


__all__ = [
    "DialogueStore",
    "get_dialogue_store",
    "BlockDigest",
    "DialogueAnalyst",
    "InterpretationPipeline",
    "get_dialogue_analyst",
    "get_interpretation_pipeline",
    "VIEWS_COUNTER_KEY",
    "ActorRuntime",
    "ActorStateStore",
    "AlarmScheduler",
    "RateLimiterActor",
    "get_actor_runtime",
    "get_alarm_scheduler",
    "SummaryEngine",
    "get_summary_engine",
    "schedule_summary_refresh",
]
