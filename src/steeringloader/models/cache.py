from __future__ import annotations

from pydantic import BaseModel, Field

from steeringloader.models.templates import TemplateMetadata

DEFAULT_TTL_SECONDS = 300
MIN_TTL_SECONDS = 60
MAX_TTL_SECONDS = 3600

DEFAULT_MAX_ENTRIES = 100
MIN_MAX_ENTRIES = 10
MAX_MAX_ENTRIES = 1000


class CacheEntry(BaseModel):
    """Cached listing for one (repository, subdirectory) key."""

    templates: list[TemplateMetadata]
    stored_at_ms: int  # Epoch milliseconds at write time
    tree_hash: str = ""  # "" = not tracked


class CacheConfiguration(BaseModel):
    ttl_seconds: int = Field(
        default=DEFAULT_TTL_SECONDS, ge=MIN_TTL_SECONDS, le=MAX_TTL_SECONDS
    )
    max_entries: int = Field(
        default=DEFAULT_MAX_ENTRIES, ge=MIN_MAX_ENTRIES, le=MAX_MAX_ENTRIES
    )

    @property
    def ttl_ms(self) -> int:
        return self.ttl_seconds * 1000


class CacheStats(BaseModel):
    total_entries: int
    fresh_entries: int
    stale_entries: int
    configuration: CacheConfiguration
