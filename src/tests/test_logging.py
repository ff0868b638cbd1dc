"""
Tests for the loguru setup.
"""

import logging
import sys

import pytest
from loguru import logger

from config.logging import setup_logging

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestSetupLogging:
    """Test loguru sink configuration."""

    def test_file_sink_created(self, tmp_path, monkeypatch):
        """Test a log file is written outside debug mode."""
        monkeypatch.delenv("DEBUG", raising=False)

        setup_logging("INFO", logs_dir=tmp_path)
        logger.info("written to file")

        assert list(tmp_path.glob("import_*.log"))

    def test_no_file_sink_in_debug(self, tmp_path, monkeypatch):
        """Test debug mode logs to the console only."""
        monkeypatch.setenv("DEBUG", "1")

        setup_logging(logs_dir=tmp_path / "logs")

        assert not (tmp_path / "logs").exists()

    def test_stdlib_logging_is_intercepted(self, tmp_path, monkeypatch):
        """Test standard logging records reach loguru."""
        monkeypatch.setenv("DEBUG", "1")
        setup_logging("DEBUG", logs_dir=tmp_path)
        messages = []
        logger.add(messages.append, format="{message}", level="DEBUG")

        logging.getLogger("httpx").info("HTTP Request: GET https://docs.google.com")

        assert any("HTTP Request" in message for message in messages)
