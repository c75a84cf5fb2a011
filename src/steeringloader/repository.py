"""Parsing of user-supplied repository references.

Accepted forms:

- ``https://github.com/owner/repo`` (optionally ending in ``.git``)
- ``owner/repo``
- ``owner/repo/path/to/steering``
"""

from __future__ import annotations

import re

from steeringloader.errors import ErrorCode, SteeringError
from steeringloader.models.templates import RepositoryConfig

DEFAULT_BRANCH = "main"

_FULL_URL = re.compile(r"^https?://github\.com/([^/]+)/([^/]+)")
_OWNER_NAME = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]*$")
_REPO_NAME = re.compile(r"^[a-zA-Z0-9._-]+$")


def is_valid_owner(name: str) -> bool:
    return bool(name) and _OWNER_NAME.match(name) is not None


def is_valid_repo(name: str) -> bool:
    return bool(name) and name not in (".", "..") and _REPO_NAME.match(name) is not None


def parse_repository_url(url: str) -> RepositoryConfig:
    trimmed = url.strip()
    if not trimmed:
        raise SteeringError(
            ErrorCode.INVALID_CONFIG,
            "Empty repository URL",
            user_message="Repository URL cannot be empty",
            details={"url": url},
        )

    match = _FULL_URL.match(trimmed)
    if match:
        owner, repo = match.group(1), match.group(2).removesuffix(".git")
        path = None
    else:
        parts = trimmed.split("/")
        if len(parts) < 2:
            raise SteeringError(
                ErrorCode.INVALID_CONFIG,
                "Invalid repository URL format",
                user_message=(
                    'Repository URL must be in format "owner/repo" or '
                    '"https://github.com/owner/repo"'
                ),
                details={"url": url},
            )
        owner, repo = parts[0], parts[1]
        path_parts = [p for p in parts[2:] if p.strip()]
        path = "/".join(path_parts) or None

    if not is_valid_owner(owner):
        raise SteeringError(
            ErrorCode.INVALID_CONFIG,
            "Invalid owner name",
            user_message="Owner name contains invalid characters",
            details={"owner": owner},
        )
    if not is_valid_repo(repo):
        raise SteeringError(
            ErrorCode.INVALID_CONFIG,
            "Invalid repository name",
            user_message="Repository name contains invalid characters",
            details={"repo": repo},
        )

    return RepositoryConfig(owner=owner, repo=repo, path=path, branch=DEFAULT_BRANCH)


def validate_repository_config(config: RepositoryConfig) -> bool:
    return is_valid_owner(config.owner) and is_valid_repo(config.repo)
