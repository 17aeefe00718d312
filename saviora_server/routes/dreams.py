from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.concurrency import run_in_threadpool

from ..models import (
    ConversationKey,
    DialogueTurnRequest,
    DialogueTurnResponse,
    Message,
    MessageCreateRequest,
    MessageListResponse,
    RateLimitRequest,
    SummaryRefresh,
    SummaryRefreshRequest,
    SummaryResponse,
    ViewIncrement,
)
from ..services import (
    VIEWS_COUNTER_KEY,
    ActorRuntime,
    DialogueAnalyst,
    DialogueStore,
    SummaryEngine,
    get_actor_runtime,
    get_dialogue_analyst,
    get_dialogue_store,
    get_summary_engine,
    schedule_summary_refresh,
)
from .dependencies import get_current_user, require_admission

router = APIRouter(prefix="/dreams", tags=["dreams"])


@router.post("/{dream_id}/messages", response_model=Message, status_code=status.HTTP_201_CREATED)
# Append one dialogue turn and let the summary engine catch up in the background
async def append_message(
    dream_id: str,
    payload: MessageCreateRequest,
    user: str = Depends(require_admission),
    store: DialogueStore = Depends(get_dialogue_store),
    engine: SummaryEngine = Depends(get_summary_engine),
) -> Message:
    key = ConversationKey(user=user, dream_id=dream_id, block_id=payload.block_id)
    message = await run_in_threadpool(store.append_message, key, payload.role, payload.content)
    schedule_summary_refresh(engine, key, payload.block_text)
    return message


@router.get("/{dream_id}/messages", response_model=MessageListResponse)
def list_messages(
    dream_id: str,
    block_id: Optional[str] = Query(default=None, alias="blockId"),
    user: str = Depends(get_current_user),
    store: DialogueStore = Depends(get_dialogue_store),
) -> MessageListResponse:
    key = ConversationKey(user=user, dream_id=dream_id, block_id=block_id)
    return MessageListResponse(messages=store.list_messages(key))


@router.get("/{dream_id}/summary", response_model=SummaryResponse)
def get_summary(
    dream_id: str,
    block_id: Optional[str] = Query(default=None, alias="blockId"),
    user: str = Depends(get_current_user),
    store: DialogueStore = Depends(get_dialogue_store),
) -> SummaryResponse:
    key = ConversationKey(user=user, dream_id=dream_id, block_id=block_id)
    return SummaryResponse(summary=store.get_summary(key))


@router.post("/{dream_id}/summary/refresh", response_model=SummaryRefresh)
# Run a refresh pass now; below the threshold this returns the stored summary untouched
async def refresh_summary(
    dream_id: str,
    payload: SummaryRefreshRequest,
    user: str = Depends(require_admission),
    engine: SummaryEngine = Depends(get_summary_engine),
) -> SummaryRefresh:
    key = ConversationKey(user=user, dream_id=dream_id, block_id=payload.block_id)
    return await engine.refresh(key, payload.block_text)


@router.post("/{dream_id}/analyze", response_model=DialogueTurnResponse)
# Answer one dreamer turn; the rolling summary is refreshed inline before the reply is composed
async def analyze_turn(
    dream_id: str,
    payload: DialogueTurnRequest,
    user: str = Depends(require_admission),
    analyst: DialogueAnalyst = Depends(get_dialogue_analyst),
) -> DialogueTurnResponse:
    key = ConversationKey(user=user, dream_id=dream_id, block_id=payload.block_id)
    turn = await analyst.reply(
        key,
        payload.block_text,
        payload.content,
        extra_system_prompt=payload.extra_system_prompt,
    )
    return DialogueTurnResponse(
        user_message=turn.user_message,
        reply=turn.reply,
        summary_outcome=turn.summary_outcome,
    )


@router.post("/{dream_id}/views", response_model=ViewIncrement, response_model_by_alias=True)
async def record_view(
    dream_id: str,
    runtime: ActorRuntime = Depends(get_actor_runtime),
) -> ViewIncrement:
    result = await runtime.evaluate(
        VIEWS_COUNTER_KEY,
        RateLimitRequest(action="increment_view", dream_id=dream_id),
    )
    return result


__all__ = ["router"]
