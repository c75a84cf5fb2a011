"""Unit tests for steeringloader.logconfig."""

from __future__ import annotations

import json

import pytest
import structlog

from steeringloader.config import LoggingSettings
from steeringloader.logconfig import configure_logging


def test_json_output_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(LoggingSettings(level="INFO", format="json"))

    structlog.get_logger().info("cache_cleared", removed=3)

    captured = capsys.readouterr()
    assert captured.out == ""
    record = json.loads(captured.err.strip())
    assert record["event"] == "cache_cleared"
    assert record["removed"] == 3
    assert record["level"] == "info"
    assert "timestamp" in record


def test_level_filters_lower_events(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(LoggingSettings(level="WARNING", format="json"))

    log = structlog.get_logger()
    log.info("cache_hit", key="acme/steering")
    log.warning("github_request_retry", attempt=1)

    lines = capsys.readouterr().err.strip().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["event"] == "github_request_retry"


def test_text_format(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(LoggingSettings(level="DEBUG", format="text"))

    structlog.get_logger().debug("templates_fetched", count=2)

    err = capsys.readouterr().err
    assert "templates_fetched" in err
    assert "count=2" in err
