"""Tests for final block and dream interpretations."""

from __future__ import annotations

import pytest

from saviora_server.config import Settings
from saviora_server.errors import UpstreamFailure
from saviora_server.models import Message
from saviora_server.services.interpretation import BlockDigest, InterpretationPipeline, clean_interpretation
from tests.fakes import FakeGenerator


def _message(role: str, content: str) -> Message:
    return Message(
        id="m-" + content[:4],
        role=role,
        content=content,
        dream_id="dream-1",
        block_id="block-1",
        created_at="2026-01-01T00:00:00.000Z",
    )


@pytest.fixture
def pipeline(generator: FakeGenerator, settings: Settings) -> InterpretationPipeline:
    return InterpretationPipeline(generator, settings)


class TestInterpretBlock:
    @pytest.mark.asyncio
    async def test_prompt_combines_block_summary_and_recent_turns(
        self, pipeline: InterpretationPipeline, generator: FakeGenerator
    ) -> None:
        generator.respond_next("The flooded house stands for a family secret.")

        result = await pipeline.interpret_block(
            "The house was flooded up to the windows.",
            "The dreamer connects water with their mother.",
            [_message("user", "It felt calm, not scary."), _message("assistant", "Calm in what way?")],
        )

        assert result == "The flooded house stands for a family secret."
        prompt = generator.last_prompt
        assert "The house was flooded up to the windows." in prompt
        assert "The dreamer connects water with their mother." in prompt
        assert "Dreamer: It felt calm, not scary." in prompt
        assert "Assistant: Calm in what way?" in prompt
        call = generator.calls[0]
        assert call["max_tokens"] == 600
        assert call["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_missing_summary_uses_placeholder(
        self, pipeline: InterpretationPipeline, generator: FakeGenerator
    ) -> None:
        await pipeline.interpret_block("A red door.", "")

        assert "The dialogue has just started" in generator.last_prompt
        assert "Latest dialogue messages" not in generator.last_prompt

    @pytest.mark.asyncio
    async def test_block_text_is_truncated(
        self, pipeline: InterpretationPipeline, generator: FakeGenerator
    ) -> None:
        await pipeline.interpret_block("y" * 9000, "summary")

        assert "y" * 4000 in generator.last_prompt
        assert "y" * 4001 not in generator.last_prompt

    @pytest.mark.asyncio
    async def test_failure_propagates(self, pipeline: InterpretationPipeline, generator: FakeGenerator) -> None:
        generator.fail_next("503 from provider")

        with pytest.raises(UpstreamFailure, match="503 from provider"):
            await pipeline.interpret_block("A red door.", "summary")

    @pytest.mark.asyncio
    async def test_empty_output_is_a_failure(
        self, pipeline: InterpretationPipeline, generator: FakeGenerator
    ) -> None:
        generator.respond_next("```\nnothing\n```")

        with pytest.raises(UpstreamFailure):
            await pipeline.interpret_block("A red door.", "summary")


class TestInterpretDream:
    @pytest.mark.asyncio
    async def test_prompt_lists_every_block(self, pipeline: InterpretationPipeline, generator: FakeGenerator) -> None:
        generator.respond_next('"Both blocks circle around leaving home."')
        digests = [
            BlockDigest(summary="Water means safety.", text="The flooded house."),
            BlockDigest(summary="", text="A train without doors.", recent_messages=[_message("user", "I missed it.")]),
        ]

        result = await pipeline.interpret_dream("The flooded house. A train without doors.", digests)

        assert result == "Both blocks circle around leaving home."
        prompt = generator.last_prompt
        assert "### Block 1:" in prompt and "### Block 2:" in prompt
        assert "Dialogue context (summary):\nWater means safety." in prompt
        assert "Dreamer: I missed it." in prompt
        assert generator.calls[0]["max_tokens"] == 800

    @pytest.mark.asyncio
    async def test_without_blocks(self, pipeline: InterpretationPipeline, generator: FakeGenerator) -> None:
        await pipeline.interpret_dream("Only fog.", [])

        assert "(no block dialogues)" in generator.last_prompt

    @pytest.mark.asyncio
    async def test_failure_propagates(self, pipeline: InterpretationPipeline, generator: FakeGenerator) -> None:
        generator.fail_next()

        with pytest.raises(UpstreamFailure):
            await pipeline.interpret_dream("Only fog.", [])


class TestCleanInterpretation:
    def test_strips_code_and_quotes(self) -> None:
        assert clean_interpretation("```json\n{}\n```\n'Plain answer.'") == "Plain answer."

    def test_passes_plain_text_through(self) -> None:
        assert clean_interpretation("  A calm reading.  ") == "A calm reading."
