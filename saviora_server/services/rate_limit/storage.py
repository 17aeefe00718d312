"""Durable per-key state and alarms for hosted actors."""

from __future__ import annotations

import json
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

from ...errors import StorageFailure
from ...logging_config import logger


class ActorStateStore:
    """Low-level persistence for actor key/value state and wake-up alarms."""

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
                "actor state directory creation failed",
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
                raise StorageFailure(f"actor store unavailable: {exc}") from exc
            try:
                yield conn
            except sqlite3.Error as exc:
                raise StorageFailure(f"{operation} failed: {exc}") from exc
            finally:
                conn.close()

    def _ensure_schema(self) -> None:
        schema_sql = """
        CREATE TABLE IF NOT EXISTS actor_state (
            actor_key TEXT NOT NULL,
            name TEXT NOT NULL,
            value TEXT NOT NULL,
            PRIMARY KEY (actor_key, name)
        );

        CREATE TABLE IF NOT EXISTS actor_alarms (
            actor_key TEXT PRIMARY KEY,
            fire_at INTEGER NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_actor_alarms_fire_at
        ON actor_alarms (fire_at);
        """
        with self._session("ensure_schema") as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.executescript(schema_sql)

    def get_value(self, actor_key: str, name: str) -> Optional[Any]:
        with self._session("get_value") as conn:
            row = conn.execute(
                "SELECT value FROM actor_state WHERE actor_key = ? AND name = ?",
                (actor_key, name),
            ).fetchone()
        return json.loads(row["value"]) if row else None

    def put_value(self, actor_key: str, name: str, value: Any) -> None:
        encoded = json.dumps(value)
        with self._session("put_value") as conn:
            conn.execute(
                "INSERT INTO actor_state (actor_key, name, value) VALUES (?, ?, ?)"
                " ON CONFLICT (actor_key, name) DO UPDATE SET value = excluded.value",
                (actor_key, name, encoded),
            )

    def delete_value(self, actor_key: str, name: str) -> bool:
        with self._session("delete_value") as conn:
            cursor = conn.execute(
                "DELETE FROM actor_state WHERE actor_key = ? AND name = ?",
                (actor_key, name),
            )
            return cursor.rowcount > 0

    def get_alarm(self, actor_key: str) -> Optional[int]:
        with self._session("get_alarm") as conn:
            row = conn.execute(
                "SELECT fire_at FROM actor_alarms WHERE actor_key = ?",
                (actor_key,),
            ).fetchone()
        return int(row["fire_at"]) if row else None

    def set_alarm(self, actor_key: str, fire_at: int) -> None:
        with self._session("set_alarm") as conn:
            conn.execute(
                "INSERT INTO actor_alarms (actor_key, fire_at) VALUES (?, ?)"
                " ON CONFLICT (actor_key) DO UPDATE SET fire_at = excluded.fire_at",
                (actor_key, fire_at),
            )

    def claim_alarm(self, actor_key: str, fire_at: int) -> bool:
        """Consume the alarm only if it is still scheduled for ``fire_at``."""
        with self._session("claim_alarm") as conn:
            cursor = conn.execute(
                "DELETE FROM actor_alarms WHERE actor_key = ? AND fire_at = ?",
                (actor_key, fire_at),
            )
            return cursor.rowcount > 0

    def fetch_due_alarms(self, now_ms: int) -> List[Tuple[str, int]]:
        with self._session("fetch_due_alarms") as conn:
            rows = conn.execute(
                "SELECT actor_key, fire_at FROM actor_alarms WHERE fire_at <= ? ORDER BY fire_at, actor_key",
                (now_ms,),
            ).fetchall()
        return [(row["actor_key"], int(row["fire_at"])) for row in rows]

    def clear_all(self) -> None:
        with self._session("clear_all") as conn:
            conn.execute("DELETE FROM actor_state")
            conn.execute("DELETE FROM actor_alarms")


class ActorStorage:
    """Storage handle scoped to a single actor key."""

    def __init__(self, store: ActorStateStore, actor_key: str) -> None:
        self._store = store
        self.actor_key = actor_key

    def get(self, name: str) -> Optional[Any]:
        return self._store.get_value(self.actor_key, name)

    def put(self, name: str, value: Any) -> None:
        self._store.put_value(self.actor_key, name, value)

    def delete(self, name: str) -> bool:
        return self._store.delete_value(self.actor_key, name)

    def get_alarm(self) -> Optional[int]:
        return self._store.get_alarm(self.actor_key)

    def set_alarm(self, fire_at: int) -> None:
        self._store.set_alarm(self.actor_key, fire_at)


__all__ = ["ActorStateStore", "ActorStorage"]
