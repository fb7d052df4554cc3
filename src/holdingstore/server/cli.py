"""Command line entry point for the holding store server."""

import argparse
import sys
from pathlib import Path

import uvicorn

from holdingstore.config import ConfigManager, ServerConfig
from holdingstore.config.config_manager import (
    DEFAULT_API_KEY,
    DEFAULT_API_USER,
    DEFAULT_LIBRARY_PATH,
    DEFAULT_PORT,
)
from holdingstore.exceptions import ConfigurationError
from holdingstore.logging import LoggingConfig, configure_logging
from holdingstore.server.app import create_app


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the server."""
    parser = argparse.ArgumentParser(
        description="Write-once object store for music holdings",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML or JSON configuration file (overrides the flags below)",
    )
    parser.add_argument(
        "--library-path",
        type=str,
        default=DEFAULT_LIBRARY_PATH,
        help=f"Path of library (default: {DEFAULT_LIBRARY_PATH})",
    )
    parser.add_argument(
        "--apiuser",
        type=str,
        default=DEFAULT_API_USER,
        help="API username",
    )
    parser.add_argument(
        "--apikey",
        type=str,
        default=DEFAULT_API_KEY,
        help="API key",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port to listen on (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",  # noqa: S104
        help="Interface to bind (default: all interfaces)",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Optional .env file providing HOLDINGSTORE_API_USER / HOLDINGSTORE_API_KEY",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for the rotating log file",
    )
    return parser


def load_server_config(args: argparse.Namespace) -> ServerConfig:
    """Build the server configuration from parsed arguments.

    Raises:
        ConfigurationError: If the configuration file or env file is invalid

    """
    if args.config:
        config = ConfigManager.load_config(args.config)
    else:
        config = ConfigManager.from_defaults(
            library_path=args.library_path,
            api_user=args.apiuser,
            api_key=args.apikey,
            port=args.port,
        )

    if args.env_file:
        config = ConfigManager.apply_env_file(config, args.env_file)

    return config


def main(argv: list[str] | None = None) -> None:
    """Execute the main entry point for the holding store server."""
    args = build_parser().parse_args(argv)

    logger = configure_logging(
        LoggingConfig(
            log_name="holdingstore",
            log_level=args.log_level,
            log_dir=Path(args.log_dir) if args.log_dir else None,
            include_server_loggers=True,
        ),
    )

    try:
        config = load_server_config(args)
        config.library_path.mkdir(parents=True, exist_ok=True)
    except ConfigurationError:
        logger.exception("Configuration error")
        sys.exit(1)
    except OSError:
        logger.exception("Cannot create library directory")
        sys.exit(1)

    logger.info(f"Server running on port {config.port}")
    uvicorn.run(
        create_app(config, logger),
        host=args.host,
        port=config.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
