"""Unit tests for structlog configuration."""

from __future__ import annotations

import json

import pytest
import structlog

from hpm.config import LoggingSettings
from hpm.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_json_format_writes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(level="INFO", format="json"))
        structlog.get_logger().info("package_installed", name="foo-plugin")

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "package_installed"
        assert record["name"] == "foo-plugin"
        assert record["level"] == "info"

    def test_level_filters_lower_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(level="WARNING", format="text"))
        log = structlog.get_logger()
        log.info("hidden_event")
        log.warning("visible_event")

        err = capsys.readouterr().err
        assert "hidden_event" not in err
        assert "visible_event" in err
