from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

TEMPLATE_EXTENSION = ".md"


class TemplateMetadata(BaseModel):
    """One markdown template discovered in a repository."""

    name: str  # Display name, extension stripped
    filename: str
    path: str  # Full path within the repository tree
    content_hash: str  # Git blob SHA
    size_bytes: int = Field(ge=0)
    download_url: str
    kind: Literal["file", "directory"] = "file"


class RepositoryConfig(BaseModel):
    owner: str
    repo: str
    path: str | None = None
    branch: str | None = "main"


class ValidationResult(BaseModel):
    valid: bool
    error: str | None = None
    status_code: int | None = None


class RateLimitInfo(BaseModel):
    limit: int
    remaining: int
    reset_time: datetime
    authenticated: bool


class LoadResult(BaseModel):
    """Outcome of copying a template into a workspace."""

    success: bool
    error: str | None = None
    filepath: str | None = None
