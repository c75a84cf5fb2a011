"""Shared error taxonomy.

Every failure that crosses a public boundary of the package is a
``SteeringError`` carrying an ``ErrorCode``. The code decides what a caller
can do about it (see ``suggested_actions``); the ``user_message`` is safe to
show as-is.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    # Network
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"

    # GitHub API
    REPOSITORY_NOT_FOUND = "REPOSITORY_NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    FORBIDDEN = "FORBIDDEN"

    # File system
    PERMISSION_DENIED = "PERMISSION_DENIED"
    DISK_FULL = "DISK_FULL"
    FILE_EXISTS = "FILE_EXISTS"

    # Configuration
    INVALID_CONFIG = "INVALID_CONFIG"
    MISSING_CONFIG = "MISSING_CONFIG"

    # Cache
    CACHE_CORRUPTED = "CACHE_CORRUPTED"
    CACHE_QUOTA_EXCEEDED = "CACHE_QUOTA_EXCEEDED"


class ErrorAction(StrEnum):
    """Recovery actions a front-end can offer next to an error."""

    CONFIGURE_TOKEN = "Configure Token"
    VIEW_RATE_LIMIT = "View Rate Limit"
    CONFIGURE_REPOSITORY = "Configure Repository"
    USE_LOCAL_MODE = "Use Local Mode"
    CLEAR_CACHE = "Clear Cache"
    RETRY = "Retry"
    VIEW_OUTPUT = "View Output"


_USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NETWORK_ERROR: "Unable to connect to GitHub. Please check your internet connection.",
    ErrorCode.TIMEOUT: "Request to GitHub timed out. Please try again.",
    ErrorCode.REPOSITORY_NOT_FOUND: (
        "Repository not found. Please check the repository URL and ensure it exists."
    ),
    ErrorCode.UNAUTHORIZED: "Authentication failed. Please check your GitHub token.",
    ErrorCode.RATE_LIMIT_EXCEEDED: (
        "GitHub API rate limit exceeded. Please wait or configure an authentication token."
    ),
    ErrorCode.FORBIDDEN: (
        "Access forbidden. You may not have permission to access this repository."
    ),
    ErrorCode.PERMISSION_DENIED: "Permission denied. Unable to write to the file system.",
    ErrorCode.DISK_FULL: "Disk is full. Please free up space and try again.",
    ErrorCode.FILE_EXISTS: "File already exists. Please choose whether to overwrite.",
    ErrorCode.INVALID_CONFIG: "Invalid configuration. Please check your repository settings.",
    ErrorCode.MISSING_CONFIG: (
        "No configuration found. Please configure a GitHub repository or local path."
    ),
    ErrorCode.CACHE_CORRUPTED: "Cache data is corrupted. Clearing cache and fetching fresh data.",
    ErrorCode.CACHE_QUOTA_EXCEEDED: "Cache storage quota exceeded. Clearing old cache entries.",
}

_ACTIONS: dict[ErrorCode, tuple[ErrorAction, ...]] = {
    ErrorCode.UNAUTHORIZED: (ErrorAction.CONFIGURE_TOKEN, ErrorAction.VIEW_OUTPUT),
    ErrorCode.RATE_LIMIT_EXCEEDED: (
        ErrorAction.CONFIGURE_TOKEN,
        ErrorAction.VIEW_RATE_LIMIT,
        ErrorAction.VIEW_OUTPUT,
    ),
    ErrorCode.REPOSITORY_NOT_FOUND: (ErrorAction.CONFIGURE_REPOSITORY, ErrorAction.VIEW_OUTPUT),
    ErrorCode.FORBIDDEN: (
        ErrorAction.CONFIGURE_TOKEN,
        ErrorAction.CONFIGURE_REPOSITORY,
        ErrorAction.VIEW_OUTPUT,
    ),
    ErrorCode.MISSING_CONFIG: (ErrorAction.CONFIGURE_REPOSITORY, ErrorAction.USE_LOCAL_MODE),
    ErrorCode.CACHE_CORRUPTED: (ErrorAction.CLEAR_CACHE, ErrorAction.VIEW_OUTPUT),
    ErrorCode.NETWORK_ERROR: (ErrorAction.RETRY, ErrorAction.VIEW_OUTPUT),
    ErrorCode.TIMEOUT: (ErrorAction.RETRY, ErrorAction.VIEW_OUTPUT),
}

# Codes where trying again later (without user action) can succeed.
_RECOVERABLE = frozenset(
    {
        ErrorCode.NETWORK_ERROR,
        ErrorCode.TIMEOUT,
        ErrorCode.RATE_LIMIT_EXCEEDED,
        ErrorCode.CACHE_CORRUPTED,
    }
)


def get_user_message(code: ErrorCode) -> str:
    """Default human-readable message for an error code."""
    return _USER_MESSAGES.get(code, "An unexpected error occurred.")


def suggested_actions(code: ErrorCode) -> tuple[ErrorAction, ...]:
    return _ACTIONS.get(code, (ErrorAction.VIEW_OUTPUT,))


class SteeringError(Exception):
    """Typed failure raised by every public operation of the package.

    ``message`` is the technical description (logged), ``user_message`` the
    text meant for people. ``details`` carries whatever the caller needs to
    act on the error: offending paths, the rate-limit reset time, the
    response type of an unexpected payload.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        recoverable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.user_message = user_message or get_user_message(code)
        self.details: dict[str, Any] = details or {}
        self.status_code = status_code
        self.recoverable = code in _RECOVERABLE if recoverable is None else recoverable

    @property
    def actions(self) -> tuple[ErrorAction, ...]:
        return suggested_actions(self.code)

    def __repr__(self) -> str:
        return f"SteeringError(code={self.code.value!r}, message={self.message!r})"
