"""Error taxonomy shared by the actor, dialogue and interpretation layers."""

from __future__ import annotations

from typing import Any


class SavioraError(RuntimeError):
    """Base class for service errors carrying a stable wire code."""

    code = "internal_error"


class BadRequest(SavioraError):
    """Raised when a request body is unparseable or misses required fields."""

    code = "bad_request"


class StorageFailure(SavioraError):
    """Raised when the relational store is unavailable or rejects a write."""

    code = "storage_unavailable"


class UpstreamFailure(SavioraError):
    """Raised when the text-generation service is unreachable or answers with an error."""

    code = "upstream_failure"


class StaleState(SavioraError):
    """Internal signal: a persisted actor record outlived its stale buffer."""

    code = "stale_state"


class AdmissionDenied(SavioraError):
    """Raised by the admission gate when an identity exhausted its window."""

    code = "rate_limited"

    def __init__(self, decision: Any) -> None:
        super().__init__("rate limit exceeded")
        self.decision = decision


__all__ = [
    "SavioraError",
    "AdmissionDenied",
    "BadRequest",
    "StorageFailure",
    "UpstreamFailure",
    "StaleState",
]
