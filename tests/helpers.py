"""Test doubles and GitHub payload builders shared by unit and integration tests."""

from __future__ import annotations

from typing import Any

from steeringloader.models.templates import TemplateMetadata

API = "https://api.github.com"
RAW = "https://raw.githubusercontent.com/acme/steering/main"


def content_item(
    name: str,
    *,
    type_: str = "file",
    path: str | None = None,
    download_url: str | None = "",
    size: int = 128,
) -> dict[str, Any]:
    """One item as returned by the GitHub contents API."""
    path = path or name
    if download_url == "":
        download_url = f"{RAW}/{path}" if type_ == "file" else None
    return {
        "name": name,
        "path": path,
        "sha": f"sha-{name}",
        "size": size,
        "url": f"{API}/repos/acme/steering/contents/{path}",
        "html_url": f"https://github.com/acme/steering/blob/main/{path}",
        "git_url": f"{API}/repos/acme/steering/git/blobs/sha-{name}",
        "download_url": download_url,
        "type": type_,
        "_links": {"self": "", "git": "", "html": ""},
    }


def make_template(name: str, **overrides: Any) -> TemplateMetadata:
    fields: dict[str, Any] = {
        "name": name,
        "filename": f"{name}.md",
        "path": f"{name}.md",
        "content_hash": f"sha-{name}",
        "size_bytes": 64,
        "download_url": f"{RAW}/{name}.md",
    }
    fields.update(overrides)
    return TemplateMetadata(**fields)


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class DictProvider:
    """ConfigurationProvider backed by a plain dict."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self.values: dict[str, Any] = dict(values or {})
        self.reads = 0

    def get(self, setting_name: str, default: Any = None) -> Any:
        self.reads += 1
        return self.values.get(setting_name, default)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


