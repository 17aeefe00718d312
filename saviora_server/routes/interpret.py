from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ..models import (
    BlockInterpretationRequest,
    ConversationKey,
    DreamInterpretationRequest,
    InterpretationResponse,
)
from ..services import (
    BlockDigest,
    DialogueStore,
    InterpretationPipeline,
    get_dialogue_store,
    get_interpretation_pipeline,
)
from .dependencies import require_admission

router = APIRouter(prefix="/interpret", tags=["interpret"])


@router.post("/block", response_model=InterpretationResponse)
# Final reading of one block from its rolling summary plus the turns not yet summarized
async def interpret_block(
    payload: BlockInterpretationRequest,
    user: str = Depends(require_admission),
    store: DialogueStore = Depends(get_dialogue_store),
    pipeline: InterpretationPipeline = Depends(get_interpretation_pipeline),
) -> InterpretationResponse:
    key = ConversationKey(user=user, dream_id=payload.dream_id, block_id=payload.block_id)
    dialogue = await run_in_threadpool(store.unprocessed, key)
    interpretation = await pipeline.interpret_block(
        payload.block_text,
        dialogue.rolling_summary,
        dialogue.unprocessed_messages,
    )
    return InterpretationResponse(interpretation=interpretation)


@router.post("/dream", response_model=InterpretationResponse)
async def interpret_dream(
    payload: DreamInterpretationRequest,
    user: str = Depends(require_admission),
    store: DialogueStore = Depends(get_dialogue_store),
    pipeline: InterpretationPipeline = Depends(get_interpretation_pipeline),
) -> InterpretationResponse:
    digests = []
    for block in payload.blocks:
        block_key = ConversationKey(user=user, dream_id=payload.dream_id, block_id=block.id)
        dialogue = await run_in_threadpool(store.unprocessed, block_key)
        digests.append(
            BlockDigest(
                summary=dialogue.rolling_summary,
                text=block.text,
                recent_messages=tuple(dialogue.unprocessed_messages),
            )
        )
    interpretation = await pipeline.interpret_dream(payload.dream_text, digests)
    return InterpretationResponse(interpretation=interpretation)


__all__ = ["router"]
