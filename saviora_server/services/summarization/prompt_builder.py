from __future__ import annotations

from dataclasses import dataclass
from textwrap import dedent
from typing import Dict, List, Sequence

from ...models import Message


@dataclass(frozen=True)
class SummaryPrompt:
    system_prompt: str
    messages: List[Dict[str, str]]


_SYSTEM_PROMPT = dedent(
    """
    You compress dream-analysis dialogues so their context survives between sessions.
    Rebuild the rolling summary of the dialogue by merging the key points of the new
    messages into the previous summary.

    KEEP:
    - the dreamer's associations with symbols and images
    - emotions and feelings the dreamer reports
    - life context (work, relationships, events)
    - important details and memories
    - insights and conclusions reached so far

    RULES:
    1. Output only the updated summary as plain prose, at most a few short paragraphs.
    2. Retain still-relevant facts from the previous summary; never drop them silently.
    3. Do not invent facts; use only the dream fragment, the previous summary and the messages.
    4. Write in the language the dreamer uses.
    """
).strip()


def _format_existing_summary(previous_summary: str) -> str:
    summary = (previous_summary or "").strip()
    return summary if summary else "None"


def _format_messages(messages: Sequence[Message]) -> str:
    lines = [f"{message.role}: {message.content.strip()}" for message in messages]
    return "\n".join(lines) if lines else "(no new messages)"


def build_summary_prompt(
    anchor_text: str,
    previous_summary: str,
    messages: Sequence[Message],
    *,
    anchor_max_chars: int = 2000,
) -> SummaryPrompt:
    anchor = (anchor_text or "").strip()[:anchor_max_chars] or "(not provided)"
    if (previous_summary or "").strip():
        instruction = "Update the summary with the key points of the new messages."
        messages_heading = "New messages"
    else:
        instruction = "Write a short summary of this dialogue."
        messages_heading = "Dialogue messages"

    content = "\n\n".join(
        [
            f"Dream fragment:\n{anchor}",
            f"Previous dialogue summary:\n{_format_existing_summary(previous_summary)}",
            f"{messages_heading}:\n{_format_messages(messages)}",
            instruction,
        ]
    )
    return SummaryPrompt(system_prompt=_SYSTEM_PROMPT, messages=[{"role": "user", "content": content}])


__all__ = ["SummaryPrompt", "build_summary_prompt"]
