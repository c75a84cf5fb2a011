"""Shared fixtures: sample GitHub payloads and test doubles."""

from __future__ import annotations

from typing import Any

import pytest
import structlog

from tests.helpers import DictProvider, FakeClock, RecordingSleep, content_item


@pytest.fixture()
def mixed_listing() -> list[dict[str, Any]]:
    """Directory listing with markdown, non-markdown, a directory and an oversized file."""
    return [
        content_item("testing.md"),
        content_item("README.txt"),
        content_item("nested", type_="dir"),
        content_item("Architecture.md"),
        content_item("huge.md", download_url=None, size=150_000_000),
        content_item("api-design.md"),
        content_item("logo.png"),
    ]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def provider() -> DictProvider:
    return DictProvider({"cache.ttl_seconds": 300, "cache.max_entries": 10})


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any ``configure_logging`` call made during the test."""
    yield
    structlog.reset_defaults()
