from __future__ import annotations

from steeringloader.models.cache import CacheConfiguration, CacheEntry, CacheStats
from steeringloader.models.github import GitHubContent, GitHubRateLimit
from steeringloader.models.templates import (
    TEMPLATE_EXTENSION,
    LoadResult,
    RateLimitInfo,
    RepositoryConfig,
    TemplateMetadata,
    ValidationResult,
)

__all__ = [
    # templates
    "TEMPLATE_EXTENSION",
    "TemplateMetadata",
    "RepositoryConfig",
    "ValidationResult",
    "RateLimitInfo",
    "LoadResult",
    # cache
    "CacheEntry",
    "CacheConfiguration",
    "CacheStats",
    # github wire format
    "GitHubContent",
    "GitHubRateLimit",
]
