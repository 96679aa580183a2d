"""
Tests for logging configuration.

Tests cover:
- Log directory and file creation
- Log level configuration via TODOBI_LOG_LEVEL
- Per-module logger naming
- Rotation settings and the TextualHandler option
"""

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

from todobi.logging_config import (
    BACKUP_COUNT,
    MAX_BYTES,
    get_logger,
    setup_logging,
)


@pytest.fixture
def mock_log_dir(tmp_path, monkeypatch):
    """Point LOG_DIR and LOG_FILE at a temporary directory."""
    log_dir = tmp_path / ".todobi" / "logs"
    log_file = log_dir / "todobi.log"

    monkeypatch.setattr("todobi.logging_config.LOG_DIR", log_dir)
    monkeypatch.setattr("todobi.logging_config.LOG_FILE", log_file)

    return log_dir, log_file


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset root handlers before and after each test."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)

    yield

    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)


def flush_handlers():
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestLogFile:

    def test_log_directory_created(self, mock_log_dir):
        log_dir, _ = mock_log_dir
        assert not log_dir.exists()

        setup_logging()

        assert log_dir.is_dir()

    def test_messages_written_with_format(self, mock_log_dir):
        _, log_file = mock_log_dir
        setup_logging()

        get_logger("todobi.services.sync_engine").warning("Push failed")
        flush_handlers()

        content = log_file.read_text()
        assert "todobi.services.sync_engine" in content
        assert "WARNING" in content
        assert "Push failed" in content
        assert re.search(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", content)

    def test_rotating_handler_configured(self, mock_log_dir):
        setup_logging()

        handlers = [
            h for h in logging.getLogger().handlers
            if isinstance(h, RotatingFileHandler)
        ]
        assert len(handlers) == 1
        assert handlers[0].maxBytes == MAX_BYTES
        assert handlers[0].backupCount == BACKUP_COUNT

    def test_repeated_setup_does_not_duplicate_handlers(self, mock_log_dir):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_textual_handler_option(self, mock_log_dir):
        from textual.logging import TextualHandler

        setup_logging(use_textual_handler=True)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], TextualHandler)


class TestLogLevel:

    def test_default_is_info(self, mock_log_dir):
        with patch.dict(os.environ, {}, clear=True):
            setup_logging()
        assert logging.getLogger().level == logging.INFO

    @pytest.mark.parametrize("value,expected", [
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("INVALID", logging.INFO),
    ])
    def test_env_var(self, mock_log_dir, value, expected):
        with patch.dict(os.environ, {"TODOBI_LOG_LEVEL": value}):
            setup_logging()
        assert logging.getLogger().level == expected

    def test_parameter_overrides_env_var(self, mock_log_dir):
        with patch.dict(os.environ, {"TODOBI_LOG_LEVEL": "ERROR"}):
            setup_logging(log_level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_info_filters_debug(self, mock_log_dir):
        _, log_file = mock_log_dir
        setup_logging(log_level="INFO")

        logger = get_logger("test")
        logger.debug("hidden detail")
        logger.info("visible detail")
        flush_handlers()

        content = log_file.read_text()
        assert "hidden detail" not in content
        assert "visible detail" in content


class TestGetLogger:

    def test_name_matches(self):
        assert get_logger("todobi.store").name == "todobi.store"

    def test_same_name_same_logger(self):
        assert get_logger("todobi.models") is get_logger("todobi.models")
