from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MessageRole = Literal["user", "assistant"]
RefreshOutcome = Literal["skipped", "created", "updated", "deferred", "superseded", "empty"]


class ConversationKey(BaseModel):
    """Composite identifier scoping a message log and its summary."""

    model_config = ConfigDict(frozen=True)

    user: str
    dream_id: str
    block_id: Optional[str] = None

    @property
    def storage_block_id(self) -> str:
        # SQLite treats NULLs as distinct in UNIQUE constraints.
        return self.block_id or ""

    def label(self) -> str:
        return f"{self.user}:{self.dream_id}:{self.block_id or '-'}"


class Message(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    role: MessageRole
    content: str
    dream_id: str
    block_id: Optional[str] = None
    created_at: datetime

    def as_llm_message(self) -> dict:
        return {"role": self.role, "content": self.content}


class SummaryRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    dream_id: str
    block_id: Optional[str] = None
    summary_text: str
    last_processed_count: int
    updated_at: datetime


class UnprocessedDialogue(BaseModel):
    """Rolling summary plus the turns it does not cover yet."""

    rolling_summary: str = ""
    unprocessed_messages: List[Message] = Field(default_factory=list)
    total_count: int = 0


class SummaryRefresh(BaseModel):
    """Outcome of a single summary refresh pass."""

    outcome: RefreshOutcome
    summary_text: str = ""
    last_processed_count: int = 0
    external_calls: int = 0


class MessageCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    role: MessageRole
    content: str = Field(..., min_length=1)
    block_id: Optional[str] = Field(default=None, alias="blockId")
    block_text: str = Field(default="", alias="blockText")

    @field_validator("content")
    @classmethod
    def _strip_content(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("content must not be blank")
        return stripped


class DialogueTurnRequest(BaseModel):
    """One dreamer turn sent for an analysis reply."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content: str = Field(..., min_length=1)
    block_id: Optional[str] = Field(default=None, alias="blockId")
    block_text: str = Field(default="", alias="blockText")
    extra_system_prompt: Optional[str] = Field(default=None, alias="extraSystemPrompt")

    @field_validator("content")
    @classmethod
    def _strip_content(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("content must not be blank")
        return stripped


class DialogueTurnResponse(BaseModel):
    user_message: Message
    reply: Message
    summary_outcome: RefreshOutcome


class MessageListResponse(BaseModel):
    messages: List[Message] = Field(default_factory=list)


class SummaryRefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    block_id: Optional[str] = Field(default=None, alias="blockId")
    block_text: str = Field(default="", alias="blockText")


class SummaryResponse(BaseModel):
    summary: Optional[SummaryRecord] = None


__all__ = [
    "ConversationKey",
    "DialogueTurnRequest",
    "DialogueTurnResponse",
    "Message",
    "MessageCreateRequest",
    "MessageListResponse",
    "MessageRole",
    "RefreshOutcome",
    "SummaryRecord",
    "SummaryRefresh",
    "SummaryRefreshRequest",
    "SummaryResponse",
    "UnprocessedDialogue",
]
