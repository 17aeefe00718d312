"""Tests for the SQLite dialogue store."""

from __future__ import annotations

import sqlite3

import pytest

from saviora_server.errors import StorageFailure
from saviora_server.models import ConversationKey
from saviora_server.services.dialogue import DialogueStore


def test_messages_are_returned_in_append_order(dialogue_store: DialogueStore, block_key: ConversationKey) -> None:
    for index in range(10):
        role = "user" if index % 2 == 0 else "assistant"
        dialogue_store.append_message(block_key, role, f"turn {index}")

    messages = dialogue_store.list_messages(block_key)

    assert [m.content for m in messages] == [f"turn {i}" for i in range(10)]
    assert messages[0].role == "user"
    assert messages[1].role == "assistant"
    assert dialogue_store.count_messages(block_key) == 10


def test_conversations_are_isolated(dialogue_store: DialogueStore, block_key: ConversationKey) -> None:
    other_block = ConversationKey(user=block_key.user, dream_id=block_key.dream_id, block_id="block-2")
    dream_level = ConversationKey(user=block_key.user, dream_id=block_key.dream_id)
    other_user = ConversationKey(user="someone@else", dream_id=block_key.dream_id, block_id=block_key.block_id)

    dialogue_store.append_message(block_key, "user", "mine")
    dialogue_store.append_message(other_block, "user", "sibling")
    dialogue_store.append_message(dream_level, "user", "whole dream")

    assert [m.content for m in dialogue_store.list_messages(block_key)] == ["mine"]
    assert [m.content for m in dialogue_store.list_messages(dream_level)] == ["whole dream"]
    assert dialogue_store.list_messages(dream_level)[0].block_id is None
    assert dialogue_store.list_messages(other_user) == []


def test_summary_upsert_creates_then_updates(dialogue_store: DialogueStore, block_key: ConversationKey) -> None:
    assert dialogue_store.get_summary(block_key) is None

    assert dialogue_store.upsert_summary(block_key, "first", 4) is True
    created = dialogue_store.get_summary(block_key)
    assert dialogue_store.upsert_summary(block_key, "second", 10) is True
    updated = dialogue_store.get_summary(block_key)

    assert created is not None and updated is not None
    assert updated.id == created.id
    assert updated.summary_text == "second"
    assert updated.last_processed_count == 10


def test_summary_upsert_never_moves_cursor_backwards(
    dialogue_store: DialogueStore, block_key: ConversationKey
) -> None:
    dialogue_store.upsert_summary(block_key, "newer", 12)

    applied = dialogue_store.upsert_summary(block_key, "older", 6)

    record = dialogue_store.get_summary(block_key)
    assert applied is False
    assert record is not None
    assert record.summary_text == "newer"
    assert record.last_processed_count == 12


def test_summary_upsert_is_idempotent(dialogue_store: DialogueStore, block_key: ConversationKey) -> None:
    assert dialogue_store.upsert_summary(block_key, "same", 6) is True
    assert dialogue_store.upsert_summary(block_key, "same again", 6) is True

    record = dialogue_store.get_summary(block_key)
    assert record is not None
    assert record.summary_text == "same again"


def test_unprocessed_returns_turns_after_cursor(dialogue_store: DialogueStore, block_key: ConversationKey) -> None:
    for index in range(5):
        dialogue_store.append_message(block_key, "user", f"m{index}")
    dialogue_store.upsert_summary(block_key, "covers three", 3)

    dialogue = dialogue_store.unprocessed(block_key)

    assert dialogue.rolling_summary == "covers three"
    assert [m.content for m in dialogue.unprocessed_messages] == ["m3", "m4"]
    assert dialogue.total_count == 5


def test_dream_views_accumulate(dialogue_store: DialogueStore) -> None:
    dialogue_store.add_dream_views({"d1": 2, "d2": 1})
    dialogue_store.add_dream_views({"d1": 3})

    assert dialogue_store.get_dream_views("d1") == 5
    assert dialogue_store.get_dream_views("d2") == 1
    assert dialogue_store.get_dream_views("unknown") == 0


def test_sqlite_errors_surface_as_storage_failure(
    dialogue_store: DialogueStore, block_key: ConversationKey, settings
) -> None:
    conn = sqlite3.connect(settings.database_path)
    conn.execute("DROP TABLE messages")
    conn.commit()
    conn.close()

    with pytest.raises(StorageFailure):
        dialogue_store.append_message(block_key, "user", "lost")
