"""One-shot final interpretations built from already-compressed dialogue state."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ...config import Settings, get_settings
from ...errors import UpstreamFailure
from ...llm_client import TextGenerationFailed
from ...logging_config import logger
from ...models import Message
from ..summarization import TextGenerationPort
from .prompts import BLOCK_INTERPRETATION_PROMPT, DREAM_INTERPRETATION_PROMPT


_CODE_FENCE = re.compile(r"```[\s\S]*?```")
_WRAPPING_QUOTES = re.compile(r"^[\"'`]+|[\"'`]+$")


@dataclass(frozen=True)
class BlockDigest:
    """What the dream interpretation needs to know about one block."""

    summary: str
    text: str = ""
    recent_messages: Sequence[Message] = field(default_factory=tuple)


def strip_code_blocks(text: str) -> str:
    return _CODE_FENCE.sub("", text or "").strip()


def clean_interpretation(text: str) -> str:
    return _WRAPPING_QUOTES.sub("", strip_code_blocks(text)).strip()


def _render_recent(messages: Sequence[Message]) -> str:
    labels = {"user": "Dreamer", "assistant": "Assistant"}
    return "\n".join(f"{labels.get(m.role, m.role)}: {m.content}" for m in messages)


class InterpretationPipeline:
    """Produces terminal interpretations; never writes dialogue state."""

    def __init__(self, generator: TextGenerationPort, settings: Optional[Settings] = None) -> None:
        self._generator = generator
        self._settings = settings or get_settings()

    async def interpret_block(
        self,
        block_text: str,
        block_summary: str,
        recent_messages: Sequence[Message] = (),
    ) -> str:
        sections = [
            BLOCK_INTERPRETATION_PROMPT,
            f"Current block:\n{block_text.strip()[: self._settings.block_text_max_chars]}",
            f"Rolling summary of the dialogue:\n{block_summary.strip() or 'The dialogue has just started'}",
        ]
        if recent_messages:
            sections.append(f"Latest dialogue messages (after the summary):\n{_render_recent(recent_messages)}")
        sections.append("Based on ALL of the context above, give a full interpretation of this dream block.")
        return await self._interpret(
            "\n\n".join(sections),
            max_tokens=self._settings.block_interpretation_max_tokens,
            kind="block",
        )

    async def interpret_dream(self, dream_text: str, block_summaries: Sequence[BlockDigest]) -> str:
        blocks: List[str] = []
        for index, block in enumerate(block_summaries, start=1):
            parts = [f"### Block {index}:"]
            if block.text.strip():
                parts.append(block.text.strip())
            if block.summary.strip():
                parts.append(f"Dialogue context (summary):\n{block.summary.strip()}")
            if block.recent_messages:
                parts.append(f"Latest messages:\n{_render_recent(block.recent_messages)}")
            blocks.append("\n".join(parts))

        sections = [
            DREAM_INTERPRETATION_PROMPT,
            f"Full dream text:\n{dream_text.strip()}",
            "Dialogues by block:\n" + ("\n\n".join(blocks) if blocks else "(no block dialogues)"),
            "Write one coherent final interpretation of the whole dream, taking every block's dialogue into account.",
        ]
        return await self._interpret(
            "\n\n".join(sections),
            max_tokens=self._settings.dream_interpretation_max_tokens,
            kind="dream",
        )

    async def _interpret(self, prompt: str, *, max_tokens: int, kind: str) -> str:
        result = await self._generator.generate(
            [{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=self._settings.interpretation_temperature,
        )
        if isinstance(result, TextGenerationFailed):
            logger.error("interpretation failed", extra={"kind": kind, "error": result.error})
            raise UpstreamFailure(result.error)

        interpretation = clean_interpretation(result.text)
        if not interpretation:
            logger.error("interpretation came back empty", extra={"kind": kind})
            raise UpstreamFailure("interpretation response was empty")
        return interpretation


__all__ = ["BlockDigest", "InterpretationPipeline", "clean_interpretation", "strip_code_blocks"]
