"""Shapes of the GitHub REST responses the client relies on.

Only the fields the client reads are declared; everything else in the
payload is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GitHubContent(BaseModel):
    """Entry of the contents API (directory listing item or single file)."""

    model_config = ConfigDict(extra="ignore")

    name: str
    path: str
    sha: str
    size: int = 0
    type: str  # "file" | "dir" | "symlink" | "submodule"
    download_url: str | None = None


class RateLimitCore(BaseModel):
    model_config = ConfigDict(extra="ignore")

    limit: int
    remaining: int
    reset: int  # Unix seconds
    used: int = 0


class RateLimitResources(BaseModel):
    model_config = ConfigDict(extra="ignore")

    core: RateLimitCore


class GitHubRateLimit(BaseModel):
    model_config = ConfigDict(extra="ignore")

    resources: RateLimitResources
