from __future__ import annotations

import asyncio
from typing import Dict, Set

from ...errors import StorageFailure
from ...logging_config import logger
from ...models import ConversationKey
from .engine import SummaryEngine

_pending: Dict[ConversationKey, str] = {}
_running: Set[ConversationKey] = set()


def schedule_summary_refresh(engine: SummaryEngine, key: ConversationKey, anchor_text: str) -> None:
    """Queue a background refresh for ``key`` unless one is already running."""
    _pending[key] = anchor_text
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("summary refresh skipped (no running event loop)")
        _pending.pop(key, None)
        return

    if key not in _running:
        loop.create_task(run_refresh_worker(engine, key))


async def run_refresh_worker(engine: SummaryEngine, key: ConversationKey) -> None:
    if key in _running:
        return

    _running.add(key)
    try:
        while key in _pending:
            anchor_text = _pending.pop(key)
            try:
                await engine.refresh(key, anchor_text)
            except StorageFailure as exc:
                logger.error(
                    "background summary refresh failed",
                    extra={"conversation": key.label(), "error": str(exc)},
                )
            except Exception as exc:
                logger.exception(
                    "background summary refresh raised unexpectedly",
                    extra={"conversation": key.label(), "error": str(exc)},
                )
    finally:
        _running.discard(key)


__all__ = ["run_refresh_worker", "schedule_summary_refresh"]
