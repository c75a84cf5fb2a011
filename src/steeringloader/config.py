"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (STEERINGLOADER__CACHE__TTL_SECONDS=600)
  2. steeringloader.yaml    (searched in cwd, then ~/.config/steeringloader/)
  3. Hardcoded defaults

The config file is optional; every field has a default.

The cache does not hold on to a ``Settings`` instance. It reads its two knobs
through a ``ConfigurationProvider`` on every operation, so edits to the
environment or the YAML file apply without a restart. Values read that way are
advisory: anything missing, malformed or out of range falls back to the
defaults in ``resolve_cache_configuration``.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal, Protocol

import platformdirs
import structlog
from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from steeringloader.models.cache import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_TTL_SECONDS,
    MAX_MAX_ENTRIES,
    MAX_TTL_SECONDS,
    MIN_MAX_ENTRIES,
    MIN_TTL_SECONDS,
    CacheConfiguration,
)

log = structlog.get_logger()

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("steeringloader")


def _find_config_file() -> str | None:
    """Return the path of the first steeringloader.yaml found, or None."""
    candidates = [
        Path("steeringloader.yaml"),
        Path.home() / ".config" / "steeringloader" / "steeringloader.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class GitHubSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api_base_url: str = "https://api.github.com"
    timeout_seconds: float = 30.0
    user_agent: str = "Kiro-Steering-Loader"
    token: SecretStr | None = None


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Not range-checked here: clamping happens when the cache reads them.
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    max_entries: int = DEFAULT_MAX_ENTRIES
    # None means "<data_dir>/cache.db", filled in by Settings.
    db_path: str | None = None


class WorkspaceSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    steering_dir: str = ".kiro/steering"


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: STEERINGLOADER__GITHUB__TOKEN=ghp_...
        env_prefix="STEERINGLOADER__",
        env_nested_delimiter="__",
        yaml_file_encoding="utf-8",
    )

    data_dir: str = _DEFAULT_DATA_DIR
    # "owner/repo", "owner/repo/sub/dir" or "https://github.com/owner/repo"
    repository: str | None = None
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def _default_db_path(self) -> Settings:
        if self.cache.db_path is None:
            self.cache.db_path = str(Path(self.data_dir) / "cache.db")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            # Looked up per instantiation so a newly created file is picked up.
            YamlConfigSettingsSource(settings_cls, yaml_file=_find_config_file()),
            # dotenv and file secrets intentionally excluded
        )


# ---------------------------------------------------------------------------
# Configuration provider
# ---------------------------------------------------------------------------


class ConfigurationProvider(Protocol):
    def get(self, setting_name: str, default: Any = None) -> Any: ...


class SettingsProvider:
    """``ConfigurationProvider`` over ``Settings`` with dotted setting names.

    The factory is called on every read. The default factory re-reads the
    environment and the YAML file each time; pass ``lambda: settings`` to pin
    a particular instance.
    """

    def __init__(self, factory: Callable[[], Settings] = Settings) -> None:
        self._factory = factory

    def get(self, setting_name: str, default: Any = None) -> Any:
        value: Any = self._factory()
        for part in setting_name.split("."):
            value = getattr(value, part, None)
            if value is None:
                return default
        return value


def _read_int(
    provider: ConfigurationProvider | None,
    setting_name: str,
    default: int,
    lower: int,
    upper: int,
) -> int:
    if provider is None:
        return default
    try:
        raw = provider.get(setting_name, default)
    except Exception:
        log.warning("config_read_error", setting=setting_name, exc_info=True)
        return default

    if isinstance(raw, bool):
        return default
    if isinstance(raw, float) and not math.isfinite(raw):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(lower, min(upper, value))


def resolve_cache_configuration(provider: ConfigurationProvider | None) -> CacheConfiguration:
    """Read TTL and max-entries, clamped to their allowed ranges. Never raises."""
    return CacheConfiguration(
        ttl_seconds=_read_int(
            provider, "cache.ttl_seconds", DEFAULT_TTL_SECONDS, MIN_TTL_SECONDS, MAX_TTL_SECONDS
        ),
        max_entries=_read_int(
            provider, "cache.max_entries", DEFAULT_MAX_ENTRIES, MIN_MAX_ENTRIES, MAX_MAX_ENTRIES
        ),
    )
