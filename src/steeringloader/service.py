"""Cache-or-fetch orchestration over ``GitHubClient`` and ``TemplateCache``."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from steeringloader.errors import ErrorCode, SteeringError
from steeringloader.workspace import DEFAULT_STEERING_DIR, write_template

if TYPE_CHECKING:
    from steeringloader.cache import TemplateCache
    from steeringloader.github import GitHubClient
    from steeringloader.models.cache import CacheStats
    from steeringloader.models.templates import LoadResult, RepositoryConfig, TemplateMetadata
    from steeringloader.workspace import ConfirmOverwrite

log = structlog.get_logger()


def build_cache_key(owner: str, repo: str, path: str | None = None) -> str:
    """Cache key for a repository subdirectory.

    The branch is not part of the key: two branches of the same path share
    one cache slot.
    """
    # TODO: include the branch once existing caches can be migrated to the new key format.
    key = f"{owner}/{repo}"
    return f"{key}/{path}" if path else key


class TemplateService:
    def __init__(
        self,
        client: GitHubClient,
        cache: TemplateCache,
        *,
        steering_dir: str = DEFAULT_STEERING_DIR,
    ) -> None:
        self._client = client
        self._cache = cache
        self._steering_dir = steering_dir

    async def get_templates(
        self, config: RepositoryConfig, *, force_refresh: bool = False
    ) -> list[TemplateMetadata]:
        """Return the templates for ``config``, from cache when possible.

        Fetch failures propagate unchanged. A corrupted cache entry is dropped
        and treated as a miss.
        """
        key = build_cache_key(config.owner, config.repo, config.path)

        if force_refresh:
            await self._cache.invalidate(key)
        else:
            try:
                cached = await self._cache.get(key)
            except SteeringError as exc:
                if exc.code is not ErrorCode.CACHE_CORRUPTED:
                    raise
                log.warning("cache_entry_discarded", key=key)
                cached = None
            if cached is not None:
                log.debug("cache_hit", key=key, count=len(cached))
                return cached

        log.debug("cache_miss", key=key, force_refresh=force_refresh)
        templates = await self._client.fetch_templates(
            config.owner, config.repo, config.path, config.branch
        )
        await self._cache.put(key, templates)
        return templates

    async def load_template(
        self,
        template: TemplateMetadata,
        workspace_path: str | Path,
        *,
        overwrite: bool = False,
        confirm_overwrite: ConfirmOverwrite | None = None,
    ) -> LoadResult:
        """Download ``template`` and write it into the workspace's steering directory."""
        content = await self._client.fetch_file_content(template.download_url)
        return write_template(
            content,
            template.filename,
            workspace_path,
            steering_dir=self._steering_dir,
            overwrite=overwrite,
            confirm_overwrite=confirm_overwrite,
        )

    async def invalidate(self, config: RepositoryConfig) -> None:
        await self._cache.invalidate(build_cache_key(config.owner, config.repo, config.path))

    async def clear_cache(self) -> None:
        await self._cache.clear_all()

    def cache_stats(self) -> CacheStats:
        return self._cache.get_stats()
