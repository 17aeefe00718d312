from __future__ import annotations

import asyncio
import threading
import weakref
from typing import Dict, List, Optional, Protocol

from fastapi.concurrency import run_in_threadpool

from ...config import Settings, get_settings
from ...llm_client import TextGenerationFailed, TextGenerationResult
from ...logging_config import logger
from ...models import ConversationKey, SummaryRefresh, UnprocessedDialogue
from ..dialogue import DialogueStore
from .prompt_builder import build_summary_prompt


class TextGenerationPort(Protocol):
    async def generate(
        self,
        messages: List[Dict[str, str]],
        *,
        max_tokens: int,
        temperature: float,
        system: Optional[str] = None,
    ) -> TextGenerationResult:  # pragma: no cover - typing protocol
        ...


class SummaryEngine:
    """Keeps a bounded rolling summary in step with an append-only dialogue.

    Already-summarized turns are never sent again: the stored
    ``last_processed_count`` cursor marks how much of the dialogue the summary
    covers, and only the slice after it is compressed. Refreshes for the same
    conversation run one at a time and the store rejects cursor regressions.
    """

    def __init__(
        self,
        store: DialogueStore,
        generator: TextGenerationPort,
        settings: Optional[Settings] = None,
    ) -> None:
        self._store = store
        self._generator = generator
        self._settings = settings or get_settings()
        self._locks: "weakref.WeakValueDictionary[ConversationKey, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._global_lock = threading.Lock()

    @property
    def threshold(self) -> int:
        return self._settings.summary_update_threshold

    def _lock_for(self, key: ConversationKey) -> asyncio.Lock:
        with self._global_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[key] = lock
            return lock

    @property
    def active_keys(self) -> int:
        return len(self._locks)

    async def refresh(self, key: ConversationKey, anchor_text: str) -> SummaryRefresh:
        async with self._lock_for(key):
            return await self._refresh(key, anchor_text)

    def unprocessed(self, key: ConversationKey) -> UnprocessedDialogue:
        return self._store.unprocessed(key)

    async def _refresh(self, key: ConversationKey, anchor_text: str) -> SummaryRefresh:
        existing = await run_in_threadpool(self._store.get_summary, key)
        messages = await run_in_threadpool(self._store.list_messages, key)

        total = len(messages)
        last_processed = existing.last_processed_count if existing else 0
        previous_text = existing.summary_text if existing else ""
        new_count = total - last_processed

        if existing is not None and new_count < self.threshold:
            logger.debug(
                "summary refresh skipped; threshold not reached",
                extra={"conversation": key.label(), "new_messages": new_count, "threshold": self.threshold},
            )
            return SummaryRefresh(
                outcome="skipped",
                summary_text=previous_text,
                last_processed_count=last_processed,
            )

        if existing is None and total == 0:
            return SummaryRefresh(outcome="empty")

        batch = messages[last_processed:]
        prompt = build_summary_prompt(
            anchor_text,
            previous_text,
            batch,
            anchor_max_chars=self._settings.summary_anchor_max_chars,
        )

        logger.info(
            "summary refresh started",
            extra={
                "conversation": key.label(),
                "messages_total": total,
                "batch_size": len(batch),
                "last_processed_before": last_processed,
            },
        )

        result = await self._generator.generate(
            prompt.messages,
            system=prompt.system_prompt,
            max_tokens=self._settings.summary_max_tokens,
            temperature=self._settings.summary_temperature,
        )
        if isinstance(result, TextGenerationFailed):
            logger.warning(
                "summary refresh deferred; previous summary kept",
                extra={"conversation": key.label(), "error": result.error, "pending": len(batch)},
            )
            return SummaryRefresh(
                outcome="deferred",
                summary_text=previous_text,
                last_processed_count=last_processed,
                external_calls=1,
            )

        applied = await run_in_threadpool(self._store.upsert_summary, key, result.text, total)
        if not applied:
            current = await run_in_threadpool(self._store.get_summary, key)
            return SummaryRefresh(
                outcome="superseded",
                summary_text=current.summary_text if current else result.text,
                last_processed_count=current.last_processed_count if current else total,
                external_calls=1,
            )

        logger.info(
            "summary refresh completed",
            extra={"conversation": key.label(), "last_processed_after": total},
        )
        return SummaryRefresh(
            outcome="updated" if existing is not None else "created",
            summary_text=result.text,
            last_processed_count=total,
            external_calls=1,
        )


__all__ = ["SummaryEngine", "TextGenerationPort"]
