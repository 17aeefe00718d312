"""Turn-by-turn analysis dialogue over one dream block."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from fastapi.concurrency import run_in_threadpool

from ...config import Settings, get_settings
from ...errors import UpstreamFailure
from ...llm_client import TextGenerationFailed
from ...logging_config import logger
from ...models import ConversationKey, Message
from ...models.dialogue import RefreshOutcome
from ..dialogue import DialogueStore
from ..summarization import SummaryEngine, TextGenerationPort
from .pipeline import strip_code_blocks
from .prompts import ARTWORK_DIALOGUE_SYSTEM_PROMPT, DIALOGUE_SYSTEM_PROMPT


ARTWORK_BLOCK_PREFIX = "artwork__"


@dataclass(frozen=True)
class DialogueTurn:
    user_message: Message
    reply: Message
    summary_outcome: RefreshOutcome


def system_prompt_for(key: ConversationKey) -> str:
    if (key.block_id or "").startswith(ARTWORK_BLOCK_PREFIX):
        return ARTWORK_DIALOGUE_SYSTEM_PROMPT
    return DIALOGUE_SYSTEM_PROMPT


class DialogueAnalyst:
    """Answers one dreamer turn with the block's rolling summary as memory.

    The summary is brought up to date before the reply is composed. A failed
    refresh falls back to the stored summary plus the turns it does not cover.
    Both turns are written only after the reply arrives, so a failed call
    leaves the dialogue untouched and the turn can be resent.
    """

    def __init__(
        self,
        store: DialogueStore,
        engine: SummaryEngine,
        generator: TextGenerationPort,
        settings: Optional[Settings] = None,
    ) -> None:
        self._store = store
        self._engine = engine
        self._generator = generator
        self._settings = settings or get_settings()

    async def reply(
        self,
        key: ConversationKey,
        block_text: str,
        content: str,
        *,
        extra_system_prompt: Optional[str] = None,
    ) -> DialogueTurn:
        refresh = await self._engine.refresh(key, block_text)
        dialogue = await run_in_threadpool(self._store.unprocessed, key)
        recent = dialogue.unprocessed_messages[-self._settings.dialogue_recent_turns :]

        messages = self._compose(block_text, dialogue.rolling_summary, recent, content, extra_system_prompt)
        result = await self._generator.generate(
            messages,
            system=system_prompt_for(key),
            max_tokens=self._settings.dialogue_max_tokens,
            temperature=self._settings.dialogue_temperature,
        )
        if isinstance(result, TextGenerationFailed):
            logger.error("dialogue reply failed", extra={"conversation": key.label(), "error": result.error})
            raise UpstreamFailure(result.error)

        # A reply made only of code blocks is kept verbatim rather than emptied
        text = strip_code_blocks(result.text) or result.text.strip()

        user_message = await run_in_threadpool(self._store.append_message, key, "user", content)
        reply = await run_in_threadpool(self._store.append_message, key, "assistant", text)
        logger.info(
            "dialogue turn answered",
            extra={
                "conversation": key.label(),
                "summary_outcome": refresh.outcome,
                "recent_turns": len(recent),
            },
        )
        return DialogueTurn(user_message=user_message, reply=reply, summary_outcome=refresh.outcome)

    def _compose(
        self,
        block_text: str,
        rolling_summary: str,
        recent: Sequence[Message],
        content: str,
        extra_system_prompt: Optional[str],
    ) -> List[Dict[str, str]]:
        messages: List[Dict[str, str]] = []
        if rolling_summary.strip():
            messages.append({"role": "system", "content": f"Rolling summary of the dialogue:\n{rolling_summary.strip()}"})
        block = (block_text or "").strip()[: self._settings.block_text_max_chars]
        messages.append({"role": "system", "content": f"Current block:\n{block}"})
        messages.extend(message.as_llm_message() for message in recent)
        messages.append({"role": "user", "content": content})
        if extra_system_prompt and extra_system_prompt.strip():
            messages.append({"role": "system", "content": extra_system_prompt.strip()})
        return messages


__all__ = ["ARTWORK_BLOCK_PREFIX", "DialogueAnalyst", "DialogueTurn", "system_prompt_for"]
