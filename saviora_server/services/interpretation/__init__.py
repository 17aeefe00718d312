"""Analysis replies and final interpretations."""

from __future__ import annotations

from typing import Optional

from ...llm_client import TextGenerator
from ..dialogue import get_dialogue_store
from ..summarization import get_summary_engine
from .dialogue import DialogueAnalyst, DialogueTurn
from .pipeline import BlockDigest, InterpretationPipeline, clean_interpretation, strip_code_blocks


_pipeline: Optional[InterpretationPipeline] = None
_analyst: Optional[DialogueAnalyst] = None


def get_interpretation_pipeline() -> InterpretationPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = InterpretationPipeline(TextGenerator())
    return _pipeline


def get_dialogue_analyst() -> DialogueAnalyst:
    global _analyst
    if _analyst is None:
        _analyst = DialogueAnalyst(get_dialogue_store(), get_summary_engine(), TextGenerator())
    return _analyst


__all__ = [
    "BlockDigest",
    "DialogueAnalyst",
    "DialogueTurn",
    "InterpretationPipeline",
    "clean_interpretation",
    "get_dialogue_analyst",
    "get_interpretation_pipeline",
    "strip_code_blocks",
]
