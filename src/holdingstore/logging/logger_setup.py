"""Logging configuration and setup utilities for HoldingStore.

This module builds a ``logging.config.dictConfig`` dictionary with a rotating
file handler and a console handler, and optionally attaches the uvicorn
loggers to the same handlers so request logs land next to storage logs.
"""

import logging
import logging.config
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

SERVER_LOGGER_NAMES = ("uvicorn", "uvicorn.error", "uvicorn.access")


class LoggerConfigError(Exception):
    """Custom exception for logger configuration errors."""


@dataclass
class LoggingConfig:
    """Configuration for logging setup."""

    log_name: str = "holdingstore"
    log_filename: str | None = None
    log_level: str = "INFO"
    log_dir: Path | None = None
    max_bytes: int = 5 * 1024 * 1024  # 5 MB
    backup_count: int = 3
    enable_console: bool = True
    enable_file: bool = True
    include_server_loggers: bool = False


def validate_log_level(log_level: str) -> int:
    """Validate and return the numeric log level."""
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        error_msg = f"Invalid log level: {log_level}"
        raise LoggerConfigError(error_msg)
    return numeric_level


def get_default_log_dir() -> Path:
    """Get the default log directory based on environment."""
    # Services usually run with /var/log writable, developers usually don't
    var_log_path = Path("/var/log")
    if var_log_path.exists() and os.access("/var/log", os.W_OK):
        return Path("/var/log/holdingstore")
    return Path.home() / ".local" / "log" / "holdingstore"


def _build_handlers(config: LoggingConfig, numeric_level: int) -> dict[str, Any]:
    handlers: dict[str, Any] = {}

    if config.enable_file:
        log_dir = get_default_log_dir() if config.log_dir is None else config.log_dir
        log_filename = config.log_filename or f"{config.log_name}.log"

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            error_msg = f"Failed to create log directory {log_dir}: {e}"
            raise LoggerConfigError(error_msg) from e

        handlers["file_handler"] = {
            "level": numeric_level,
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(log_dir / log_filename),
            "maxBytes": config.max_bytes,
            "backupCount": config.backup_count,
            "formatter": "detailed",
            "encoding": "utf8",
        }

    if config.enable_console:
        handlers["console_handler"] = {
            "level": numeric_level,
            "class": "logging.StreamHandler",
            "formatter": "standard",
        }

    return handlers


def create_logging_config(config: LoggingConfig) -> dict[str, Any]:
    """Create logging configuration dictionary."""
    numeric_level = validate_log_level(config.log_level)
    handlers = _build_handlers(config, numeric_level)
    handler_names = list(handlers.keys())

    formatters = {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "detailed": {
            "format": "%(asctime)s %(levelname)s %(name)s:%(lineno)d: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    }

    loggers: dict[str, Any] = {
        config.log_name: {
            "handlers": handler_names,
            "level": numeric_level,
            "propagate": False,
        },
    }

    if config.include_server_loggers:
        for name in SERVER_LOGGER_NAMES:
            loggers[name] = {
                "handlers": handler_names if name == "uvicorn" else [],
                "level": numeric_level,
                "propagate": name != "uvicorn",
            }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": loggers,
    }


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Configure logging for the application.

    Args:
        config: Logging configuration object

    Returns:
        Configured logger instance

    """
    try:
        logging.config.dictConfig(create_logging_config(config))
        logger = logging.getLogger(config.log_name)
        logger.info(
            f"Logging configured for '{config.log_name}' at level {config.log_level}",
        )

    except (LoggerConfigError, ValueError, KeyError):
        # Fall back to plain console logging; an invalid level still raises here
        logging.basicConfig(
            level=validate_log_level(config.log_level),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        logger = logging.getLogger(config.log_name)
        logger.exception("Failed to configure logging. Using fallback configuration.")

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance. If not configured, uses basic configuration.

    Args:
        name: Name of the logger

    Returns:
        Logger instance

    """
    logger = logging.getLogger(name)

    parent_logger = logger.parent
    if not logger.handlers and (parent_logger is None or not parent_logger.handlers):
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    return logger
