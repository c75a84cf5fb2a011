"""Application wiring.

``open_app_state`` builds every long-lived component (SQLite-backed store,
HTTP client, cache, GitHub client, template service) and closes them again on
exit.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from steeringloader.cache import TemplateCache
from steeringloader.config import Settings, SettingsProvider
from steeringloader.errors import ErrorCode, SteeringError
from steeringloader.github import GitHubClient, build_http_client
from steeringloader.logconfig import configure_logging
from steeringloader.repository import parse_repository_url
from steeringloader.service import TemplateService
from steeringloader.store import SqliteStore

if TYPE_CHECKING:
    import httpx

    from steeringloader.models.templates import RepositoryConfig

log = structlog.get_logger()


@dataclass
class AppState:
    settings: Settings
    http_client: httpx.AsyncClient
    store: SqliteStore
    cache: TemplateCache
    github: GitHubClient
    service: TemplateService

    def repository_config(self) -> RepositoryConfig:
        """The configured repository, or ``MISSING_CONFIG`` if there is none."""
        if not self.settings.repository:
            raise SteeringError(
                ErrorCode.MISSING_CONFIG,
                "No repository configured",
                details={"setting": "repository"},
            )
        return parse_repository_url(self.settings.repository)


@asynccontextmanager
async def open_app_state(settings: Settings | None = None) -> AsyncIterator[AppState]:
    """Configure logging, open the cache database and HTTP client and yield the
    wired components.

    With no ``settings`` the cache re-reads its TTL and size bound from the
    environment / YAML file on every operation; explicit settings are pinned.
    """
    provider = SettingsProvider() if settings is None else SettingsProvider(lambda: settings)
    settings = settings or Settings()
    configure_logging(settings.logging)

    db_path = Path(settings.cache.db_path or Path(settings.data_dir) / "cache.db").expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    async with aiosqlite.connect(db_path) as db:
        store = SqliteStore(db)
        await store.init_db()

        async with build_http_client(settings.github) as http_client:
            cache = TemplateCache(store, provider)
            github = GitHubClient(http_client, settings.github)
            service = TemplateService(
                github, cache, steering_dir=settings.workspace.steering_dir
            )
            log.info("app_state_opened", db_path=str(db_path), authenticated=github.authenticated)
            yield AppState(
                settings=settings,
                http_client=http_client,
                store=store,
                cache=cache,
                github=github,
                service=service,
            )
