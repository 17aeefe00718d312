"""Rolling summary maintenance."""

from __future__ import annotations

from typing import Optional

from ...llm_client import TextGenerator
from ..dialogue import get_dialogue_store
from .engine import SummaryEngine, TextGenerationPort
from .prompt_builder import SummaryPrompt, build_summary_prompt
from .scheduler import run_refresh_worker, schedule_summary_refresh


_summary_engine: Optional[SummaryEngine] = None


def get_summary_engine() -> SummaryEngine:
    global _summary_engine
    if _summary_engine is None:
        _summary_engine = SummaryEngine(get_dialogue_store(), TextGenerator())
    return _summary_engine


__all__ = [
    "SummaryEngine",
    "SummaryPrompt",
    "TextGenerationPort",
    "build_summary_prompt",
    "get_summary_engine",
    "run_refresh_worker",
    "schedule_summary_refresh",
]
