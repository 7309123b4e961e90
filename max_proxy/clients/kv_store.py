"""Key-value stores with per-entry retention TTL for the credential record."""

from __future__ import annotations

import asyncio
import sqlite3
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Tuple


class KeyValueStore(Protocol):
    """Async get/put contract shared by every store backend."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def put(self, key: str, value: str, *, ttl_seconds: int) -> None:
        ...


class MemoryKeyValueStore:
    """Process-local store; entries vanish on restart."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._items: Dict[str, Tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._items.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            self._items.pop(key, None)
            return None
        return value

    async def put(self, key: str, value: str, *, ttl_seconds: int) -> None:
        self._items[key] = (value, self._clock() + ttl_seconds)


class SQLiteKeyValueStore:
    """File-backed store; blocking sqlite calls run in a worker thread."""

    def __init__(self, db_path: str, clock: Callable[[], float] = time.time) -> None:
        self._db_path = Path(db_path)
        self._clock = clock
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at REAL NOT NULL
                )
                """
            )

    def _get_sync(self, key: str) -> Optional[str]:
        now = self._clock()
        with self._connect() as conn:
            conn.execute("DELETE FROM kv_entries WHERE expires_at <= ?", (now,))
            row = conn.execute(
                "SELECT value FROM kv_entries WHERE key = ?", (key,)
            ).fetchone()
        if not row:
            return None
        return row["value"]

    def _put_sync(self, key: str, value: str, ttl_seconds: int) -> None:
        expires_at = self._clock() + ttl_seconds
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_entries (key, value, expires_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    expires_at = excluded.expires_at
                """,
                (key, value, expires_at),
            )

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get_sync, key)

    async def put(self, key: str, value: str, *, ttl_seconds: int) -> None:
        await asyncio.to_thread(self._put_sync, key, value, ttl_seconds)


__all__ = ["KeyValueStore", "MemoryKeyValueStore", "SQLiteKeyValueStore"]
