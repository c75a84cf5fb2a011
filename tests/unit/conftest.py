"""Unit-specific fixtures (no I/O beyond in-memory SQLite)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import pytest

from steeringloader.cache import TemplateCache
from steeringloader.store import MemoryStore, SqliteStore

if TYPE_CHECKING:
    from tests.helpers import DictProvider, FakeClock


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def cache(store: MemoryStore, provider: DictProvider, clock: FakeClock) -> TemplateCache:
    return TemplateCache(store, provider, clock=clock)


@pytest.fixture()
async def sqlite_store():
    """In-memory SQLite store for unit tests."""
    async with aiosqlite.connect(":memory:") as db:
        s = SqliteStore(db)
        await s.init_db()
        yield s
