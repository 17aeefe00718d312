from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BlockInterpretationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    dream_id: str = Field(..., alias="dreamId", min_length=1)
    block_id: Optional[str] = Field(default=None, alias="blockId")
    block_text: str = Field(..., alias="blockText", min_length=1)


class DreamBlock(BaseModel):
    id: str = Field(..., min_length=1)
    text: str = ""


class DreamInterpretationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    dream_id: str = Field(..., alias="dreamId", min_length=1)
    dream_text: str = Field(..., alias="dreamText", min_length=1)
    blocks: List[DreamBlock] = Field(default_factory=list)


class InterpretationResponse(BaseModel):
    interpretation: str


__all__ = [
    "BlockInterpretationRequest",
    "DreamBlock",
    "DreamInterpretationRequest",
    "InterpretationResponse",
]
