"""Append-only dialogue log and rolling-summary records backed by SQLite."""

from __future__ import annotations

import sqlite3
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ...errors import StorageFailure
from ...logging_config import logger
from ...models import ConversationKey, Message, SummaryRecord, UnprocessedDialogue
from ...utils.timestamps import parse_iso, to_storage_timestamp, utc_now


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS messages (
    id TEXT PRIMARY KEY,
    user TEXT NOT NULL,
    dream_id TEXT NOT NULL,
    block_id TEXT NOT NULL DEFAULT '',
    role TEXT NOT NULL,
    content TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_messages_conversation
ON messages (user, dream_id, block_id, created_at);

CREATE TABLE IF NOT EXISTS dialog_summaries (
    id TEXT PRIMARY KEY,
    user TEXT NOT NULL,
    dream_id TEXT NOT NULL,
    block_id TEXT NOT NULL DEFAULT '',
    summary TEXT NOT NULL,
    last_processed_count INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL,
    UNIQUE (user, dream_id, block_id)
);

CREATE TABLE IF NOT EXISTS dream_views (
    dream_id TEXT PRIMARY KEY,
    views_count INTEGER NOT NULL DEFAULT 0
);
"""

# Monotonic compare-and-swap: a writer holding an older cursor never moves it back.
_UPSERT_SUMMARY_SQL = """
INSERT INTO dialog_summaries (id, user, dream_id, block_id, summary, last_processed_count, updated_at)
VALUES (:id, :user, :dream_id, :block_id, :summary, :last_processed_count, :updated_at)
ON CONFLICT (user, dream_id, block_id) DO UPDATE SET
    summary = excluded.summary,
    last_processed_count = excluded.last_processed_count,
    updated_at = excluded.updated_at
WHERE excluded.last_processed_count >= dialog_summaries.last_processed_count
"""


def _block_from_storage(value: str) -> Optional[str]:
    return value or None


class DialogueStore:
    """Persistence for dialogue turns, their rolling summaries and view counters."""

    def __init__(self, db_path: Path):
        self._db_path = db_path
        self._lock = threading.Lock()
        self._ensure_directory()
        self._ensure_schema()

    def _ensure_directory(self) -> None:
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:  # pragma: no cover - defensive
            logger.warning(
                "dialogue store directory creation failed",
                extra={"error": str(exc)},
            )

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=30, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _session(self, operation: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                conn = self._connect()
            except sqlite3.Error as exc:
                logger.error(
                    "dialogue store unavailable",
                    extra={"error": str(exc), "operation": operation, "path": str(self._db_path)},
                )
                raise StorageFailure(f"dialogue store unavailable: {exc}") from exc
            try:
                yield conn
            except sqlite3.Error as exc:
                logger.error(
                    "dialogue store operation failed",
                    extra={"error": str(exc), "operation": operation},
                )
                raise StorageFailure(f"{operation} failed: {exc}") from exc
            finally:
                conn.close()

    def _ensure_schema(self) -> None:
        with self._session("ensure_schema") as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.executescript(_SCHEMA_SQL)

    # Messages -----------------------------------------------------------------

    def append_message(self, key: ConversationKey, role: str, content: str) -> Message:
        record = {
            "id": uuid.uuid4().hex,
            "user": key.user,
            "dream_id": key.dream_id,
            "block_id": key.storage_block_id,
            "role": role,
            "content": content,
            "created_at": to_storage_timestamp(utc_now()),
        }
        with self._session("append_message") as conn:
            conn.execute(
                "INSERT INTO messages (id, user, dream_id, block_id, role, content, created_at)"
                " VALUES (:id, :user, :dream_id, :block_id, :role, :content, :created_at)",
                record,
            )
        return self._row_to_message(record)

    def list_messages(self, key: ConversationKey) -> List[Message]:
        with self._session("list_messages") as conn:
            rows = conn.execute(
                "SELECT * FROM messages WHERE user = ? AND dream_id = ? AND block_id = ?"
                " ORDER BY created_at, rowid",
                (key.user, key.dream_id, key.storage_block_id),
            ).fetchall()
        return [self._row_to_message(row) for row in rows]

    def count_messages(self, key: ConversationKey) -> int:
        with self._session("count_messages") as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM messages WHERE user = ? AND dream_id = ? AND block_id = ?",
                (key.user, key.dream_id, key.storage_block_id),
            ).fetchone()
        return int(row[0])

    # Summaries ----------------------------------------------------------------

    def get_summary(self, key: ConversationKey) -> Optional[SummaryRecord]:
        with self._session("get_summary") as conn:
            row = conn.execute(
                "SELECT * FROM dialog_summaries WHERE user = ? AND dream_id = ? AND block_id = ?",
                (key.user, key.dream_id, key.storage_block_id),
            ).fetchone()
        return self._row_to_summary(row) if row else None

    def upsert_summary(self, key: ConversationKey, summary_text: str, last_processed_count: int) -> bool:
        """Write the summary for ``key``; returns False when a newer cursor is already stored."""

        payload = {
            "id": uuid.uuid4().hex,
            "user": key.user,
            "dream_id": key.dream_id,
            "block_id": key.storage_block_id,
            "summary": summary_text,
            "last_processed_count": last_processed_count,
            "updated_at": to_storage_timestamp(utc_now()),
        }
        with self._session("upsert_summary") as conn:
            cursor = conn.execute(_UPSERT_SUMMARY_SQL, payload)
            applied = cursor.rowcount > 0
        if not applied:
            logger.warning(
                "summary write rejected; stored cursor is ahead",
                extra={"conversation": key.label(), "last_processed_count": last_processed_count},
            )
        return applied

    def unprocessed(self, key: ConversationKey) -> UnprocessedDialogue:
        summary = self.get_summary(key)
        messages = self.list_messages(key)
        cursor = summary.last_processed_count if summary else 0
        return UnprocessedDialogue(
            rolling_summary=summary.summary_text if summary else "",
            unprocessed_messages=messages[cursor:],
            total_count=len(messages),
        )

    # Views --------------------------------------------------------------------

    def add_dream_views(self, counts: Dict[str, int]) -> None:
        if not counts:
            return
        with self._session("add_dream_views") as conn:
            conn.execute("BEGIN")
            try:
                conn.executemany(
                    "INSERT INTO dream_views (dream_id, views_count) VALUES (?, ?)"
                    " ON CONFLICT (dream_id) DO UPDATE SET views_count = views_count + excluded.views_count",
                    list(counts.items()),
                )
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def get_dream_views(self, dream_id: str) -> int:
        with self._session("get_dream_views") as conn:
            row = conn.execute(
                "SELECT views_count FROM dream_views WHERE dream_id = ?",
                (dream_id,),
            ).fetchone()
        return int(row[0]) if row else 0

    # Row mapping --------------------------------------------------------------

    def _row_to_message(self, row) -> Message:
        data = dict(row)
        return Message.model_validate(
            {
                "id": data["id"],
                "role": data["role"],
                "content": data["content"],
                "dream_id": data["dream_id"],
                "block_id": _block_from_storage(data["block_id"]),
                "created_at": parse_iso(data["created_at"]),
            }
        )

    def _row_to_summary(self, row: sqlite3.Row) -> SummaryRecord:
        data = dict(row)
        return SummaryRecord.model_validate(
            {
                "id": data["id"],
                "dream_id": data["dream_id"],
                "block_id": _block_from_storage(data["block_id"]),
                "summary_text": data["summary"],
                "last_processed_count": data["last_processed_count"],
                "updated_at": parse_iso(data["updated_at"]),
            }
        )


__all__ = ["DialogueStore"]
