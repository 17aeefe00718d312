"""Shared test fixtures and configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from saviora_server.config import Settings
from saviora_server.models import ConversationKey
from saviora_server.services.dialogue import DialogueStore
from saviora_server.services.rate_limit import ActorRuntime, ActorStateStore, ActorStorage
from tests.fakes import FakeClock, FakeGenerator


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        llm_api_key="test-key",
        llm_base_url="https://llm.test/v1",
        rate_limit_stale_buffer_ms=5_000,
        actor_alarm_interval_ms=1_000,
        summary_update_threshold=6,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(now=0)


@pytest.fixture
def dialogue_store(settings: Settings) -> DialogueStore:
    return DialogueStore(settings.database_path)


@pytest.fixture
def actor_store(settings: Settings) -> ActorStateStore:
    return ActorStateStore(settings.actor_database_path)


@pytest.fixture
def actor_storage(actor_store: ActorStateStore) -> ActorStorage:
    return ActorStorage(actor_store, "user@example.com")


@pytest.fixture
def runtime(
    actor_store: ActorStateStore,
    settings: Settings,
    clock: FakeClock,
    dialogue_store: DialogueStore,
) -> ActorRuntime:
    return ActorRuntime(actor_store, settings=settings, clock=clock, view_sink=dialogue_store)


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def block_key() -> ConversationKey:
    return ConversationKey(user="user@example.com", dream_id="dream-1", block_id="block-1")
