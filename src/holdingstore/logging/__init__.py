"""HoldingStore Logging Module

Centralized logging configuration for the holding store server. Supports file
and console logging with rotation, and can route the HTTP server's own loggers
through the same handlers.
"""

from .logger_setup import LoggerConfigError, LoggingConfig, configure_logging, get_logger

__all__ = ["LoggerConfigError", "LoggingConfig", "configure_logging", "get_logger"]
