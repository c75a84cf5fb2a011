"""Integration test fixtures.

Provides a fully wired AppState whose data directory (and so its SQLite
cache file) lives under ``tmp_path``. HTTP is mocked per test with respx.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from steeringloader.config import Settings
from steeringloader.state import open_app_state

if TYPE_CHECKING:
    from pathlib import Path

    from steeringloader.state import AppState


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=str(tmp_path / "data"), repository="acme/steering")


@pytest.fixture()
async def app_state(settings: Settings) -> AppState:
    """Full AppState for end-to-end template flows."""
    async with open_app_state(settings) as state:
        yield state
