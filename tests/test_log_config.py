"""Tests for structlog configuration."""

import json

import pytest
import structlog

from devinde_finances.log_config import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    """Test suite for configure_logging."""

    def test_json_output(self, capsys):
        """JSON mode renders one object per event with level and timestamp."""
        configure_logging("debug", json_output=True)

        structlog.get_logger().info("finances_loaded", plan_id="bp-1", invoices=2)

        event = json.loads(capsys.readouterr().out.strip())
        assert event["event"] == "finances_loaded"
        assert event["plan_id"] == "bp-1"
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filtering(self, capsys):
        """Events below the configured level are dropped."""
        configure_logging("WARNING")
        logger = structlog.get_logger()

        logger.info("finances_saved")
        logger.warning("finances_mutation_failed", error="disk full")

        out = capsys.readouterr().out
        assert "finances_saved" not in out
        assert "finances_mutation_failed" in out

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            configure_logging("verbose")
