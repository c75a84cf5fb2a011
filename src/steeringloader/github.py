"""GitHub contents API client.

Failures are modelled at two levels:

- Transport failures (``httpx.TransportError``: connection resets, timeouts)
  are the only thing ``_fetch_with_retry`` retries, with 1s/2s/4s backoff.
- HTTP error statuses become a ``SteeringError`` straight away and are never
  retried.

Whatever escapes the retry loop is turned into a ``SteeringError`` by
``classify_error`` before it leaves a public method.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from steeringloader.config import GitHubSettings
from steeringloader.errors import ErrorCode, SteeringError
from steeringloader.models.github import GitHubContent, GitHubRateLimit
from steeringloader.models.templates import (
    TEMPLATE_EXTENSION,
    RateLimitInfo,
    TemplateMetadata,
    ValidationResult,
)

log = structlog.get_logger()

RETRY_DELAYS: tuple[float, ...] = (1.0, 2.0, 4.0)

AUTHENTICATED_RATE_LIMIT = 5000
ANONYMOUS_RATE_LIMIT = 60

_ACCEPT = "application/vnd.github.v3+json"


def build_http_client(settings: GitHubSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx.AsyncClient used for GitHub requests."""
    settings = settings or GitHubSettings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"Accept": _ACCEPT, "User-Agent": settings.user_agent},
        follow_redirects=True,
    )


def classify_error(exc: BaseException, context: str) -> SteeringError:
    """Map any failure onto the typed taxonomy. Typed errors pass through."""
    if isinstance(exc, SteeringError):
        return exc

    message = str(exc)
    if isinstance(exc, httpx.TimeoutException) or "timeout" in message.lower():
        error = SteeringError(
            ErrorCode.TIMEOUT,
            f"{context}: Request timeout",
            user_message=(
                "Request timed out. Please check your internet connection and try again."
            ),
            details={"error": message},
        )
    else:
        error = SteeringError(
            ErrorCode.NETWORK_ERROR,
            f"{context}: {message or type(exc).__name__}",
            user_message="Network error occurred. Please check your internet connection.",
            details={"error": message},
        )
    return error


def _to_template(content: GitHubContent) -> TemplateMetadata:
    return TemplateMetadata(
        name=content.name.removesuffix(TEMPLATE_EXTENSION),
        filename=content.name,
        path=content.path,
        content_hash=content.sha,
        size_bytes=content.size,
        download_url=content.download_url or "",
        kind="directory" if content.type == "dir" else "file",
    )


def _parse_listing(items: list[Any]) -> list[GitHubContent]:
    """Validate directory listing items, skipping the ones that don't fit."""
    contents: list[GitHubContent] = []
    for index, item in enumerate(items):
        try:
            contents.append(GitHubContent.model_validate(item))
        except ValidationError as exc:
            name = item.get("name") if isinstance(item, dict) else None
            log.warning(
                "github_content_skipped", index=index, name=name, errors=exc.error_count()
            )
    return contents


def _is_template(content: GitHubContent) -> bool:
    # Files over GitHub's size limit come back without a download URL.
    return (
        content.type == "file"
        and content.name.endswith(TEMPLATE_EXTENSION)
        and content.download_url is not None
    )


def _sort_templates(templates: list[TemplateMetadata]) -> list[TemplateMetadata]:
    return sorted(templates, key=lambda t: (t.name.casefold(), t.name))


def _parse_reset(header: str | None) -> datetime:
    if header is None:
        return datetime.now(UTC)
    try:
        return datetime.fromtimestamp(int(header), UTC)
    except (ValueError, OverflowError, OSError):
        return datetime.now(UTC)


class GitHubClient:
    """Fetches template listings and raw file content from GitHub."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: GitHubSettings | None = None,
        *,
        token: str | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._settings = settings or GitHubSettings()
        self._sleep = sleep
        if token is None and self._settings.token is not None:
            token = self._settings.token.get_secret_value()
        self._token = token or None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    def set_auth_token(self, token: str) -> None:
        self._token = token or None

    def clear_auth_token(self) -> None:
        self._token = None

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def fetch_templates(
        self,
        owner: str,
        repo: str,
        path: str | None = None,
        branch: str | None = None,
    ) -> list[TemplateMetadata]:
        """List the markdown templates at ``path`` (repository root by default).

        ``path`` may point at a directory or directly at one markdown file.
        """
        api_path = f"/repos/{owner}/{repo}/contents"
        if path:
            api_path = f"{api_path}/{path.strip('/')}"
        params = {"ref": branch} if branch else None

        try:
            response = await self._fetch_with_retry(self._url(api_path), params=params)
            data = response.json()

            if isinstance(data, list):
                contents = _parse_listing(data)
            elif isinstance(data, dict) and "type" in data:
                single = GitHubContent.model_validate(data)
                if single.type != "file":
                    contents = []
                elif not single.name.endswith(TEMPLATE_EXTENSION):
                    raise SteeringError(
                        ErrorCode.INVALID_CONFIG,
                        "Path points to non-markdown file",
                        user_message=(
                            f'The configured path "{path}" points to a file "{single.name}" '
                            "that is not a markdown file. Please configure a directory path "
                            "containing markdown files."
                        ),
                        details={"path": path, "filename": single.name},
                    )
                else:
                    contents = [single]
            else:
                raise SteeringError(
                    ErrorCode.NETWORK_ERROR,
                    "Unexpected GitHub API response format",
                    user_message="Received unexpected response format from GitHub API",
                    details={"response_type": type(data).__name__},
                )

            templates = [_to_template(item) for item in contents if _is_template(item)]
        except SteeringError:
            raise
        except Exception as exc:
            raise classify_error(exc, "Failed to fetch templates") from exc

        log.debug(
            "templates_fetched",
            owner=owner,
            repo=repo,
            path=path,
            branch=branch,
            count=len(templates),
        )
        return _sort_templates(templates)

    async def fetch_file_content(self, url: str) -> str:
        """Fetch the raw text behind a template's ``download_url``."""
        try:
            response = await self._fetch_with_retry(url)
            return response.text
        except SteeringError:
            raise
        except Exception as exc:
            raise classify_error(exc, "Failed to fetch file content") from exc

    async def validate_repository(self, owner: str, repo: str) -> ValidationResult:
        """Check that the repository exists and is readable. Never raises."""
        try:
            await self._fetch_with_retry(self._url(f"/repos/{owner}/{repo}"))
        except SteeringError as exc:
            return ValidationResult(
                valid=False, error=exc.user_message or exc.message, status_code=exc.status_code
            )
        except Exception as exc:
            return ValidationResult(valid=False, error=str(exc) or "Unknown error")
        return ValidationResult(valid=True)

    async def get_rate_limit_status(self) -> RateLimitInfo:
        """Query /rate_limit once, without retries. Never raises.

        On failure the result is deliberately pessimistic: nothing remaining,
        resetting now.
        """
        try:
            response = await self._client.get(
                self._url("/rate_limit"),
                headers=self._headers(),
                timeout=self._settings.timeout_seconds,
            )
            if not response.is_success:
                raise SteeringError(
                    ErrorCode.NETWORK_ERROR,
                    f"Rate limit check failed: {response.status_code}",
                    status_code=response.status_code,
                )
            core = GitHubRateLimit.model_validate(response.json()).resources.core
            return RateLimitInfo(
                limit=core.limit,
                remaining=core.remaining,
                reset_time=datetime.fromtimestamp(core.reset, UTC),
                authenticated=self.authenticated,
            )
        except Exception:
            log.debug("rate_limit_check_failed", exc_info=True)
            return RateLimitInfo(
                limit=AUTHENTICATED_RATE_LIMIT if self.authenticated else ANONYMOUS_RATE_LIMIT,
                remaining=0,
                reset_time=datetime.now(UTC),
                authenticated=self.authenticated,
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _url(self, api_path: str) -> str:
        return f"{self._settings.api_base_url.rstrip('/')}{api_path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": _ACCEPT, "User-Agent": self._settings.user_agent}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _fetch_with_retry(
        self, url: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        """GET ``url``, retrying transport failures with exponential backoff.

        Raises ``SteeringError`` for HTTP error statuses (never retried) and
        re-raises the last ``httpx.TransportError`` once retries run out.
        """
        attempt = 0
        while True:
            try:
                response = await self._client.get(
                    url,
                    params=params,
                    headers=self._headers(),
                    timeout=self._settings.timeout_seconds,
                )
            except httpx.TransportError as exc:
                if attempt >= len(RETRY_DELAYS):
                    log.warning("github_request_failed", url=url, attempts=attempt + 1)
                    raise
                delay = RETRY_DELAYS[attempt]
                attempt += 1
                log.warning(
                    "github_request_retry",
                    url=url,
                    attempt=attempt,
                    delay_seconds=delay,
                    error=str(exc) or type(exc).__name__,
                )
                await self._sleep(delay)
                continue

            self._raise_for_status(response)
            return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if response.is_success:
            return

        if status == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
            reset_time = _parse_reset(response.headers.get("X-RateLimit-Reset"))
            log.warning("github_rate_limited", reset_time=reset_time.isoformat())
            raise SteeringError(
                ErrorCode.RATE_LIMIT_EXCEEDED,
                "GitHub API rate limit exceeded",
                user_message=f"Rate limit exceeded. Resets at {reset_time.strftime('%H:%M:%S')}",
                details={"reset_time": reset_time},
                status_code=status,
            )
        if status == 401:
            raise SteeringError(
                ErrorCode.UNAUTHORIZED,
                "GitHub authentication failed",
                user_message="Invalid GitHub token. Please update your authentication token.",
                status_code=status,
            )
        if status == 404:
            raise SteeringError(
                ErrorCode.REPOSITORY_NOT_FOUND,
                "Repository not found",
                user_message=(
                    "Repository not found or is private. Check the repository URL "
                    "or configure authentication."
                ),
                status_code=status,
            )
        if status == 403:
            raise SteeringError(
                ErrorCode.FORBIDDEN,
                "Access forbidden",
                user_message=(
                    "Access forbidden. You may not have permission to access this repository."
                ),
                status_code=status,
            )
        raise SteeringError(
            ErrorCode.NETWORK_ERROR,
            f"GitHub API request failed: {status} {response.reason_phrase}",
            details={"status": status},
            status_code=status,
        )
