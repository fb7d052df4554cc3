"""Tests for the logging module."""

import logging
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from holdingstore.logging.logger_setup import (
    SERVER_LOGGER_NAMES,
    LoggerConfigError,
    LoggingConfig,
    configure_logging,
    create_logging_config,
    get_default_log_dir,
    get_logger,
    validate_log_level,
)


class TestLoggerSetup:
    """Test cases for logger setup functionality."""

    def test_validate_log_level_valid(self) -> None:
        """Test that valid log levels are accepted."""
        assert validate_log_level("DEBUG") == logging.DEBUG
        assert validate_log_level("info") == logging.INFO
        assert validate_log_level("CRITICAL") == logging.CRITICAL

    def test_validate_log_level_invalid(self) -> None:
        """Test that invalid log levels raise an exception."""
        with pytest.raises(LoggerConfigError):
            validate_log_level("LOUD")

    def test_get_default_log_dir_service(self) -> None:
        """Test log directory selection when /var/log is writable."""
        with (
            patch("pathlib.Path.exists", return_value=True),
            patch("os.access", return_value=True),
        ):
            assert get_default_log_dir() == Path("/var/log/holdingstore")

    def test_get_default_log_dir_local(self) -> None:
        """Test log directory selection for unprivileged users."""
        with patch("pathlib.Path.exists", return_value=False):
            assert get_default_log_dir() == Path.home() / ".local" / "log" / "holdingstore"

    def test_logging_config_defaults(self) -> None:
        """Test LoggingConfig defaults."""
        config = LoggingConfig()

        assert config.log_name == "holdingstore"
        assert config.log_level == "INFO"
        assert config.max_bytes == 5 * 1024 * 1024
        assert config.backup_count == 3
        assert config.include_server_loggers is False

    def test_create_logging_config_console_only(self) -> None:
        """Test configuration with only the console handler."""
        config = LoggingConfig(log_name="console_logger", enable_file=False)
        logging_config = create_logging_config(config)

        handlers = logging_config["handlers"]
        assert list(handlers) == ["console_handler"]
        assert handlers["console_handler"]["class"] == "logging.StreamHandler"
        assert logging_config["loggers"]["console_logger"]["handlers"] == ["console_handler"]

    def test_create_logging_config_file(self) -> None:
        """Test configuration with a rotating file handler."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config = LoggingConfig(
                log_name="file_logger",
                log_dir=Path(temp_dir) / "nested",
                enable_console=False,
            )
            logging_config = create_logging_config(config)

            file_handler = logging_config["handlers"]["file_handler"]
            assert file_handler["class"] == "logging.handlers.RotatingFileHandler"
            assert file_handler["filename"] == str(Path(temp_dir) / "nested" / "file_logger.log")
            assert (Path(temp_dir) / "nested").is_dir()

    def test_create_logging_config_server_loggers(self) -> None:
        """Test that uvicorn loggers share the application handlers."""
        config = LoggingConfig(enable_file=False, include_server_loggers=True)
        loggers = create_logging_config(config)["loggers"]

        for name in SERVER_LOGGER_NAMES:
            assert name in loggers
        assert loggers["uvicorn"]["handlers"] == ["console_handler"]
        assert loggers["uvicorn.access"]["propagate"] is True

    def test_create_logging_config_without_server_loggers(self) -> None:
        """Test that uvicorn loggers are left alone by default."""
        config = LoggingConfig(enable_file=False)
        loggers = create_logging_config(config)["loggers"]

        assert not any(name in loggers for name in SERVER_LOGGER_NAMES)

    def test_create_logging_config_log_dir_failure(self) -> None:
        """Test that an uncreatable log directory raises LoggerConfigError."""
        config = LoggingConfig(log_dir=Path("/invalid/path"))

        with patch("pathlib.Path.mkdir", side_effect=PermissionError("Permission denied")):
            with pytest.raises(LoggerConfigError, match="Failed to create log directory"):
                create_logging_config(config)

    def test_configure_logging_with_file(self) -> None:
        """Test that configuring with a file handler creates the log file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config = LoggingConfig(
                log_name="test_file_logger",
                log_dir=Path(temp_dir),
                enable_console=False,
            )
            logger = configure_logging(config)

            assert logger.name == "test_file_logger"
            assert logger.level == logging.INFO
            assert [p.name for p in Path(temp_dir).glob("*.log")] == ["test_file_logger.log"]

    def test_configure_logging_falls_back(self) -> None:
        """Test fallback to basic configuration when setup fails."""
        config = LoggingConfig(log_name="fallback_logger", log_dir=Path("/invalid/path"))

        with patch("pathlib.Path.mkdir", side_effect=PermissionError("Permission denied")):
            logger = configure_logging(config)

        assert logger.name == "fallback_logger"

    def test_configure_logging_levels(self) -> None:
        """Test that the configured level is applied."""
        config = LoggingConfig(log_name="debug_logger", log_level="DEBUG", enable_file=False)
        assert configure_logging(config).level == logging.DEBUG

    def test_get_logger(self) -> None:
        """Test get_logger returns the named logger."""
        assert get_logger("holdingstore.test").name == "holdingstore.test"


if __name__ == "__main__":
    pytest.main([__file__])
