from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Union

import httpx

from ..config import Settings, get_settings
from ..errors import UpstreamFailure
from ..logging_config import logger


class TextGenerationError(UpstreamFailure):
    """Raised when the text-generation API returns an error response."""


@dataclass(frozen=True)
class TextGenerated:
    text: str
    ok: Literal[True] = True


@dataclass(frozen=True)
class TextGenerationFailed:
    error: str
    ok: Literal[False] = False


TextGenerationResult = Union[TextGenerated, TextGenerationFailed]


def _headers(*, api_key: Optional[str] = None, settings: Optional[Settings] = None) -> Dict[str, str]:
    resolved = settings or get_settings()
    key = (api_key or resolved.llm_api_key or "").strip()
    if not key:
        raise TextGenerationError("Missing text-generation API key")

    return {
        "Authorization": f"Bearer {key}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def _build_messages(messages: List[Dict[str, str]], system: Optional[str]) -> List[Dict[str, str]]:
    if system:
        return [{"role": "system", "content": system}, *messages]
    return messages


def _handle_response_error(exc: httpx.HTTPStatusError) -> None:
    response = exc.response
    detail: str
    try:
        payload = response.json()
        error = payload.get("error")
        if isinstance(error, dict):
            error = error.get("message")
        detail = error or payload.get("message") or json.dumps(payload)
    except (ValueError, AttributeError):
        detail = response.text
    raise TextGenerationError(f"Text generation request failed ({response.status_code}): {detail}") from exc


async def request_chat_completion(
    *,
    model: str,
    messages: List[Dict[str, str]],
    system: Optional[str] = None,
    api_key: Optional[str] = None,
    max_tokens: Optional[int] = None,
    temperature: Optional[float] = None,
    base_url: Optional[str] = None,
    timeout: float = 60.0,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> Any:
    """Request a chat completion and return the decoded JSON body, unvalidated."""

    resolved = settings or get_settings()
    payload: Dict[str, object] = {
        "model": model,
        "messages": _build_messages(messages, system),
        "stream": False,
    }
    if max_tokens is not None:
        payload["max_tokens"] = max_tokens
    if temperature is not None:
        payload["temperature"] = temperature

    url = f"{(base_url or resolved.llm_base_url).rstrip('/')}/chat/completions"
    headers = _headers(api_key=api_key, settings=resolved)

    async def _post(http: httpx.AsyncClient) -> Any:
        try:
            response = await http.post(url, headers=headers, json=payload, timeout=timeout)
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                _handle_response_error(exc)
            return response.json()
        except httpx.HTTPError as exc:
            raise TextGenerationError(f"Text generation request failed: {exc}") from exc
        except ValueError as exc:
            raise TextGenerationError("Text generation response was not valid JSON") from exc

    if client is not None:
        return await _post(client)
    async with httpx.AsyncClient() as http:
        return await _post(http)


def extract_message_text(response: Any) -> str:
    if not isinstance(response, dict):
        raise TextGenerationError("Text generation response was not a JSON object")
    choices = response.get("choices")
    if not isinstance(choices, list) or not choices:
        raise TextGenerationError("Text generation response missing choices")
    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    if not isinstance(message, dict):
        raise TextGenerationError("Text generation response missing message")
    content = message.get("content")
    content = content.strip() if isinstance(content, str) else ""
    if not content:
        raise TextGenerationError("Text generation response missing content")
    return content


class TextGenerator:
    """Thin facade over the chat-completions endpoint returning explicit results."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client

    async def generate(
        self,
        messages: List[Dict[str, str]],
        *,
        max_tokens: int,
        temperature: float,
        system: Optional[str] = None,
    ) -> TextGenerationResult:
        try:
            response = await request_chat_completion(
                model=self._settings.llm_model,
                messages=messages,
                system=system,
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=self._settings.llm_timeout_seconds,
                client=self._client,
                settings=self._settings,
            )
            return TextGenerated(text=extract_message_text(response))
        except TextGenerationError as exc:
            logger.warning("text generation failed", extra={"error": str(exc)})
            return TextGenerationFailed(error=str(exc))


__all__ = [
    "TextGenerated",
    "TextGenerationError",
    "TextGenerationFailed",
    "TextGenerationResult",
    "TextGenerator",
    "extract_message_text",
    "request_chat_completion",
]
