from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


RateLimitAction = Literal["hit", "reset", "get", "increment_view"]

DEFAULT_MAX_REQUESTS = 50
DEFAULT_WINDOW_MS = 30_000


class RateLimitRequest(BaseModel):
    """Wire request accepted by a rate limiter actor."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    action: RateLimitAction
    max_requests: int = Field(default=DEFAULT_MAX_REQUESTS, alias="maxRequests", gt=0)
    window_ms: int = Field(default=DEFAULT_WINDOW_MS, alias="windowMs", gt=0)
    dream_id: Optional[str] = Field(default=None, alias="dreamId")


class RateLimitState(BaseModel):
    """Persisted sliding-window state owned by a single actor."""

    model_config = ConfigDict(populate_by_name=True)

    count: int = 0
    reset_at: int = Field(default=0, alias="resetAt")

    def window_open(self) -> bool:
        return self.reset_at > 0


class RateLimitDecision(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    allowed: bool
    count: int
    remaining: int
    reset_at: int = Field(alias="resetAt")


class ViewIncrement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    count: int
    buffer_size: int = Field(alias="bufferSize")


__all__ = [
    "DEFAULT_MAX_REQUESTS",
    "DEFAULT_WINDOW_MS",
    "RateLimitAction",
    "RateLimitDecision",
    "RateLimitRequest",
    "RateLimitState",
    "ViewIncrement",
]
