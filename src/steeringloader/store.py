"""Durable key-value stores backing the template cache.

The cache needs three things from a store: a synchronous ``get``, an
asynchronous ``update`` (``None`` deletes the key) and ``keys``. Reads are
synchronous because both stores keep every value in memory; ``update`` changes
the in-memory copy before it suspends, so a read followed by an update of the
same key cannot be interleaved by another task. A failed database write puts
the previous in-memory value back before the error propagates.

Unlike ``TemplateCache`` configuration reads, store errors are never swallowed
here: if the database rejects a write the caller sees ``aiosqlite.Error``.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any, Protocol

import aiosqlite
import structlog

log = structlog.get_logger()

_MISSING = object()

_CREATE_KV_TABLE = """
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL
)
"""


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    async def update(self, key: str, value: Any) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStore:
    """Process-local store. Nothing survives a restart."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    async def update(self, key: str, value: Any) -> None:
        if value is None:
            self._values.pop(key, None)
        else:
            self._values[key] = value

    def keys(self) -> list[str]:
        return list(self._values)


class SqliteStore:
    """SQLite-backed store with an in-memory read copy.

    Values must be JSON-serialisable. Every row is loaded by ``init_db``;
    afterwards reads never touch the database and writes go through to it.
    """

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db
        self._values: dict[str, Any] = {}

    async def init_db(self) -> None:
        """Create the table, set WAL mode and load existing rows. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_KV_TABLE)
        await self._db.commit()

        cursor = await self._db.execute("SELECT key, value FROM kv_store")
        rows = await cursor.fetchall()
        self._values = {key: json.loads(value) for key, value in rows}
        log.debug("kv_store_loaded", keys=len(self._values))

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    async def update(self, key: str, value: Any) -> None:
        """Write ``value`` (or delete on ``None``) through to the database.

        The in-memory copy changes first and is rolled back if the database
        write fails, so memory never holds a value the database does not.
        """
        previous = self._values.get(key, _MISSING)
        if value is None:
            self._values.pop(key, None)
        else:
            encoded = json.dumps(value)
            self._values[key] = value

        try:
            if value is None:
                await self._db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            else:
                await self._db.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                    (key, encoded, datetime.now(UTC).isoformat()),
                )
            await self._db.commit()
        except Exception:
            if previous is _MISSING:
                self._values.pop(key, None)
            else:
                self._values[key] = previous
            log.warning("kv_store_write_failed", key=key, exc_info=True)
            # Drop a half-applied statement so a later commit cannot persist it.
            await self._db.rollback()
            raise

    def keys(self) -> list[str]:
        return list(self._values)
