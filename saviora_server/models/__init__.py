from .dialogue import (
    ConversationKey,
    DialogueTurnRequest,
    DialogueTurnResponse,
    Message,
    MessageCreateRequest,
    MessageListResponse,
    SummaryRecord,
    SummaryRefresh,
    SummaryRefreshRequest,
    SummaryResponse,
    UnprocessedDialogue,
)
from .interpretation import (
    BlockInterpretationRequest,
    DreamBlock,
    DreamInterpretationRequest,
    InterpretationResponse,
)
from .meta import HealthResponse, RootResponse
from .rate_limit import (
    RateLimitDecision,
    RateLimitRequest,
    RateLimitState,
    ViewIncrement,
)

__all__ = [
    "ConversationKey",
    "DialogueTurnRequest",
    "DialogueTurnResponse",
    "Message",
    "MessageCreateRequest",
    "MessageListResponse",
    "SummaryRecord",
    "SummaryRefresh",
    "SummaryRefreshRequest",
    "SummaryResponse",
    "UnprocessedDialogue",
    "BlockInterpretationRequest",
    "DreamBlock",
    "DreamInterpretationRequest",
    "InterpretationResponse",
    "HealthResponse",
    "RootResponse",
    "RateLimitDecision",
    "RateLimitRequest",
    "RateLimitState",
    "ViewIncrement",
]
