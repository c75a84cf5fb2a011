"""Durable template-listing cache with TTL expiry, SHA validation and LRU eviction.

Entries and the access-time table live in a ``KeyValueStore`` under the
``steeringLoader.cache.`` prefix; nothing outside that prefix is read or
written, so the store can be shared with other data.

Two error policies coexist here:

- Configuration reads are advisory. A provider that raises or returns garbage
  is logged and replaced by defaults (see ``resolve_cache_configuration``).
- Store reads and writes are not. Store exceptions propagate unchanged.

``get`` is not a pure query: reading a stale entry deletes it, and reading a
fresh one refreshes its access time.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from steeringloader.config import resolve_cache_configuration
from steeringloader.errors import ErrorCode, SteeringError
from steeringloader.models.cache import CacheConfiguration, CacheEntry, CacheStats

if TYPE_CHECKING:
    from steeringloader.config import ConfigurationProvider
    from steeringloader.models.templates import TemplateMetadata
    from steeringloader.store import KeyValueStore

log = structlog.get_logger()

CACHE_KEY_PREFIX = "steeringLoader.cache."
_ENTRY_PREFIX = f"{CACHE_KEY_PREFIX}entry."
_ACCESS_TIMES_KEY = f"{CACHE_KEY_PREFIX}accessTimes"


def _now_ms() -> int:
    return int(time.time() * 1000)


class TemplateCache:
    """Bounded cache of template listings keyed by an opaque string."""

    def __init__(
        self,
        store: KeyValueStore,
        config_provider: ConfigurationProvider | None = None,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._config_provider = config_provider
        self._clock = clock

    def configuration(self) -> CacheConfiguration:
        """Currently effective TTL and size bound, re-read on every call."""
        return resolve_cache_configuration(self._config_provider)

    # ------------------------------------------------------------------
    # Reads and writes
    # ------------------------------------------------------------------

    async def get(self, key: str) -> list[TemplateMetadata] | None:
        """Return the cached templates for ``key``, or ``None`` on miss.

        Side effects: a stale or corrupted entry is deleted together with its
        access time; a fresh hit moves the key's access time to now.

        Raises ``SteeringError(CACHE_CORRUPTED)`` when the stored entry cannot
        be decoded.
        """
        try:
            entry = self._read_entry(key)
        except SteeringError:
            await self.invalidate(key)
            raise

        if entry is None:
            return None

        if not self._is_entry_fresh(entry, self.configuration()):
            log.debug("cache_entry_expired", key=key)
            await self.invalidate(key)
            return None

        await self._touch(key)
        return entry.templates

    async def put(
        self,
        key: str,
        templates: Sequence[TemplateMetadata],
        tree_hash: str = "",
    ) -> None:
        """Store ``templates`` under ``key``, replacing any previous entry.

        The size bound is only enforced when ``key`` is new, so refreshing an
        existing key never evicts another one.
        """
        full_key = _entry_key(key)
        if self._store.get(full_key) is None:
            await self._enforce_limit()

        entry = CacheEntry(templates=list(templates), stored_at_ms=self._clock(), tree_hash=tree_hash)
        await self._store.update(full_key, entry.model_dump(mode="json"))
        await self._touch(key)

    async def invalidate(self, key: str) -> None:
        await self._store.update(_entry_key(key), None)
        await self._forget(key)

    async def clear_all(self) -> None:
        """Delete every cache entry and the access-time table."""
        removed = 0
        for store_key in self._store.keys():
            if store_key.startswith(CACHE_KEY_PREFIX):
                await self._store.update(store_key, None)
                removed += 1
        log.info("cache_cleared", removed_keys=removed)

    # ------------------------------------------------------------------
    # Freshness and validity (pure reads)
    # ------------------------------------------------------------------

    def is_fresh(self, key: str) -> bool:
        """True iff an entry exists and is younger than the TTL."""
        try:
            entry = self._read_entry(key)
        except SteeringError:
            return False
        return entry is not None and self._is_entry_fresh(entry, self.configuration())

    def is_valid(self, key: str, expected_hash: str) -> bool:
        """True iff the entry is fresh and was stored with ``expected_hash``."""
        try:
            entry = self._read_entry(key)
        except SteeringError:
            return False
        if entry is None:
            return False
        return entry.tree_hash == expected_hash and self._is_entry_fresh(
            entry, self.configuration()
        )

    def get_stats(self) -> CacheStats:
        config = self.configuration()
        keys = self._live_keys()
        fresh = 0
        for key in keys:
            try:
                entry = self._read_entry(key)
            except SteeringError:
                continue
            if entry is not None and self._is_entry_fresh(entry, config):
                fresh += 1
        return CacheStats(
            total_entries=len(keys),
            fresh_entries=fresh,
            stale_entries=len(keys) - fresh,
            configuration=config,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read_entry(self, key: str) -> CacheEntry | None:
        raw = self._store.get(_entry_key(key))
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate(raw)
        except ValidationError as exc:
            log.warning("cache_entry_corrupted", key=key, errors=exc.error_count())
            raise SteeringError(
                ErrorCode.CACHE_CORRUPTED,
                f"Cache entry for {key!r} has an unexpected shape",
                details={"key": key},
            ) from exc

    def _is_entry_fresh(self, entry: CacheEntry, config: CacheConfiguration) -> bool:
        return self._clock() - entry.stored_at_ms < config.ttl_ms

    def _live_keys(self) -> list[str]:
        return [
            store_key[len(_ENTRY_PREFIX) :]
            for store_key in self._store.keys()
            if store_key.startswith(_ENTRY_PREFIX)
        ]

    def _access_times(self) -> dict[str, int]:
        return dict(self._store.get(_ACCESS_TIMES_KEY) or {})

    async def _touch(self, key: str) -> None:
        # Read and in-memory write happen before the first suspension point.
        access_times = self._access_times()
        access_times[key] = self._clock()
        await self._store.update(_ACCESS_TIMES_KEY, access_times)

    async def _forget(self, key: str) -> None:
        access_times = self._access_times()
        if key not in access_times:
            return
        del access_times[key]
        await self._store.update(_ACCESS_TIMES_KEY, access_times)

    async def _enforce_limit(self) -> None:
        """Evict the least recently used entry if the cache is full.

        Exactly one entry is evicted per call, even if the store somehow holds
        more than ``max_entries``.
        """
        config = self.configuration()
        keys = self._live_keys()
        if len(keys) < config.max_entries:
            return

        access_times = self._access_times()
        victim = min(keys, key=lambda k: access_times.get(k, 0))
        log.info(
            "cache_entry_evicted",
            key=victim,
            last_access_ms=access_times.get(victim, 0),
            total_entries=len(keys),
            max_entries=config.max_entries,
        )
        await self.invalidate(victim)


def _entry_key(key: str) -> str:
    return f"{_ENTRY_PREFIX}{key}"
