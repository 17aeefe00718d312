from .client import (
    TextGenerated,
    TextGenerationError,
    TextGenerationFailed,
    TextGenerationResult,
    TextGenerator,
    extract_message_text,
    request_chat_completion,
)

__all__ = [
    "TextGenerated",
    "TextGenerationError",
    "TextGenerationFailed",
    "TextGenerationResult",
    "TextGenerator",
    "extract_message_text",
    "request_chat_completion",
]
