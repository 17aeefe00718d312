"""HTTP surface tests with every service dependency swapped for a local instance."""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from saviora_server.app import app
from saviora_server.config import Settings, get_settings
from saviora_server.models import ConversationKey
from saviora_server.services import (
    ActorRuntime,
    ActorStateStore,
    DialogueAnalyst,
    DialogueStore,
    InterpretationPipeline,
    SummaryEngine,
    get_actor_runtime,
    get_dialogue_analyst,
    get_dialogue_store,
    get_interpretation_pipeline,
    get_summary_engine,
)
from tests.fakes import FakeClock, FakeGenerator


USER = {"X-User-Id": "alice@example.com"}
OTHER_USER = {"X-User-Id": "bob@example.com"}


@pytest.fixture
def api_settings(settings: Settings) -> Settings:
    return settings.model_copy(update={"rate_limit_max_requests": 3})


@pytest.fixture
def api_runtime(actor_store: ActorStateStore, api_settings: Settings, clock: FakeClock, dialogue_store: DialogueStore) -> ActorRuntime:
    return ActorRuntime(actor_store, settings=api_settings, clock=clock, view_sink=dialogue_store)


@pytest.fixture
def client(
    api_settings: Settings,
    api_runtime: ActorRuntime,
    dialogue_store: DialogueStore,
    generator: FakeGenerator,
) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: api_settings
    app.dependency_overrides[get_actor_runtime] = lambda: api_runtime
    app.dependency_overrides[get_dialogue_store] = lambda: dialogue_store
    app.dependency_overrides[get_summary_engine] = lambda: SummaryEngine(dialogue_store, generator, api_settings)
    app.dependency_overrides[get_interpretation_pipeline] = lambda: InterpretationPipeline(generator, api_settings)
    app.dependency_overrides[get_dialogue_analyst] = lambda: DialogueAnalyst(
        dialogue_store, SummaryEngine(dialogue_store, generator, api_settings), generator, api_settings
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestRateLimitEndpoint:
    def test_hit_returns_decision(self, client: TestClient) -> None:
        response = client.post("/api/v1/rate-limit", headers=USER, json={"action": "hit"})

        assert response.status_code == 200
        assert response.json() == {"allowed": True, "count": 1, "remaining": 49, "resetAt": 30_000}

    def test_window_exhaustion(self, client: TestClient) -> None:
        body = {"action": "hit", "maxRequests": 2, "windowMs": 60_000}
        results = [client.post("/api/v1/rate-limit", headers=USER, json=body).json() for _ in range(3)]

        assert [r["allowed"] for r in results] == [True, True, False]
        assert results[-1]["remaining"] == 0
        assert results[-1]["resetAt"] == 60_000

    def test_get_and_reset(self, client: TestClient) -> None:
        client.post("/api/v1/rate-limit", headers=USER, json={"action": "hit"})

        peek = client.post("/api/v1/rate-limit", headers=USER, json={"action": "get"}).json()
        reset = client.post("/api/v1/rate-limit", headers=USER, json={"action": "reset"}).json()

        assert peek["count"] == 1
        assert reset["count"] == 0
        assert reset["allowed"] is True

    def test_identities_are_isolated(self, client: TestClient) -> None:
        client.post("/api/v1/rate-limit", headers=USER, json={"action": "hit"})

        other = client.post("/api/v1/rate-limit", headers=OTHER_USER, json={"action": "get"}).json()

        assert other["count"] == 0

    @pytest.mark.parametrize(
        "content",
        [b"", b"{not json", b'{"action": "explode"}', b'{"action": "hit", "maxRequests": 0}'],
    )
    def test_malformed_requests_are_rejected(self, client: TestClient, content: bytes) -> None:
        response = client.post(
            "/api/v1/rate-limit",
            headers={**USER, "Content-Type": "application/json"},
            content=content,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "bad_request"

    def test_view_action_is_not_exposed(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/rate-limit", headers=USER, json={"action": "increment_view", "dreamId": "dream-1"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "unknown action"

    def test_missing_identity(self, client: TestClient) -> None:
        response = client.post("/api/v1/rate-limit", json={"action": "hit"})

        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "unauthorized"}


class TestDialogueEndpoints:
    def test_append_and_list(self, client: TestClient) -> None:
        created = client.post(
            "/api/v1/dreams/dream-1/messages",
            headers=USER,
            json={"role": "user", "content": "  I was flying over a city.  ", "blockId": "b1"},
        )
        client.post(
            "/api/v1/dreams/dream-1/messages",
            headers=USER,
            json={"role": "assistant", "content": "How did flying feel?", "blockId": "b1"},
        )

        assert created.status_code == 201
        assert created.json()["content"] == "I was flying over a city."
        listed = client.get("/api/v1/dreams/dream-1/messages", headers=USER, params={"blockId": "b1"}).json()
        assert [m["role"] for m in listed["messages"]] == ["user", "assistant"]
        other = client.get("/api/v1/dreams/dream-1/messages", headers=OTHER_USER, params={"blockId": "b1"}).json()
        assert other["messages"] == []

    def test_blank_content_is_rejected(self, client: TestClient) -> None:
        response = client.post("/api/v1/dreams/dream-1/messages", headers=USER, json={"role": "user", "content": "   "})

        assert response.status_code == 422

    def test_admission_gate(self, client: TestClient) -> None:
        body = {"role": "user", "content": "again"}
        statuses = [
            client.post("/api/v1/dreams/dream-1/messages", headers=USER, json=body).status_code for _ in range(4)
        ]

        assert statuses == [201, 201, 201, 429]
        denied = client.post("/api/v1/dreams/dream-1/messages", headers=USER, json=body).json()
        assert denied["error"] == "rate_limited"
        assert denied["allowed"] is False
        assert "resetAt" in denied

    def test_refresh_and_read_summary(
        self, client: TestClient, dialogue_store: DialogueStore, generator: FakeGenerator
    ) -> None:
        key = ConversationKey(user="alice@example.com", dream_id="dream-1", block_id="b1")
        dialogue_store.append_message(key, "user", "The sea was inside the house.")
        dialogue_store.append_message(key, "assistant", "What did the sea feel like?")
        generator.respond_next("The sea inside the house feels calm.")

        refreshed = client.post(
            "/api/v1/dreams/dream-1/summary/refresh",
            headers=USER,
            json={"blockId": "b1", "blockText": "A sea inside the house."},
        ).json()
        summary = client.get("/api/v1/dreams/dream-1/summary", headers=USER, params={"blockId": "b1"}).json()

        assert refreshed["outcome"] == "created"
        assert refreshed["last_processed_count"] == 2
        assert summary["summary"]["summary_text"] == "The sea inside the house feels calm."
        assert summary["summary"]["last_processed_count"] == 2

    def test_analyze_turn(
        self, client: TestClient, dialogue_store: DialogueStore, generator: FakeGenerator
    ) -> None:
        generator.respond_next("What did the stairs lead to?")

        response = client.post(
            "/api/v1/dreams/dream-1/analyze",
            headers=USER,
            json={"content": "I kept climbing.", "blockId": "b1", "blockText": "Endless stairs."},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["reply"]["content"] == "What did the stairs lead to?"
        assert body["user_message"]["content"] == "I kept climbing."
        assert body["summary_outcome"] == "empty"
        key = ConversationKey(user="alice@example.com", dream_id="dream-1", block_id="b1")
        assert [m.role for m in dialogue_store.list_messages(key)] == ["user", "assistant"]

    def test_analyze_upstream_failure(
        self, client: TestClient, dialogue_store: DialogueStore, generator: FakeGenerator
    ) -> None:
        generator.fail_next("provider timeout")

        response = client.post("/api/v1/dreams/dream-1/analyze", headers=USER, json={"content": "Hello"})

        assert response.status_code == 502
        key = ConversationKey(user="alice@example.com", dream_id="dream-1")
        assert dialogue_store.count_messages(key) == 0

    def test_missing_summary(self, client: TestClient) -> None:
        response = client.get("/api/v1/dreams/dream-9/summary", headers=USER)

        assert response.status_code == 200
        assert response.json() == {"summary": None}

    def test_views_are_buffered(self, client: TestClient, dialogue_store: DialogueStore) -> None:
        first = client.post("/api/v1/dreams/dream-1/views").json()
        second = client.post("/api/v1/dreams/dream-1/views").json()

        assert first == {"success": True, "count": 1, "bufferSize": 1}
        assert second["count"] == 2
        assert dialogue_store.get_dream_views("dream-1") == 0


class TestInterpretEndpoints:
    def test_block_interpretation_uses_stored_dialogue(
        self, client: TestClient, dialogue_store: DialogueStore, generator: FakeGenerator
    ) -> None:
        key = ConversationKey(user="alice@example.com", dream_id="dream-1", block_id="b1")
        dialogue_store.append_message(key, "user", "The stairs never ended.")
        generator.respond_next("Endless stairs point to effort without reward.")

        response = client.post(
            "/api/v1/interpret/block",
            headers=USER,
            json={"dreamId": "dream-1", "blockId": "b1", "blockText": "Endless stairs."},
        )

        assert response.status_code == 200
        assert response.json() == {"interpretation": "Endless stairs point to effort without reward."}
        assert "Dreamer: The stairs never ended." in generator.last_prompt

    def test_dream_interpretation(self, client: TestClient, generator: FakeGenerator) -> None:
        generator.respond_next("A dream about moving on.")

        response = client.post(
            "/api/v1/interpret/dream",
            headers=USER,
            json={"dreamId": "dream-1", "dreamText": "Stairs, then the sea.", "blocks": [{"id": "b1", "text": "Stairs"}]},
        )

        assert response.status_code == 200
        assert response.json()["interpretation"] == "A dream about moving on."

    def test_upstream_failure_maps_to_bad_gateway(self, client: TestClient, generator: FakeGenerator) -> None:
        generator.fail_next("provider timeout")

        response = client.post(
            "/api/v1/interpret/block",
            headers=USER,
            json={"dreamId": "dream-1", "blockText": "Endless stairs."},
        )

        assert response.status_code == 502
        assert response.json() == {"ok": False, "error": "upstream_failure", "message": "provider timeout"}


def test_health(client: TestClient) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["service"] == "saviora"
