"""Common utility functions for server operations."""

import logging
import shutil
from pathlib import Path
from typing import Any

from holdingstore import __version__
from holdingstore.config import ServerConfig


def get_free_space(path: Path, logger: logging.Logger) -> int:
    """Get the bytes available to unprivileged users on the filesystem of ``path``.

    Returns
    -------
        Free space in bytes, or 0 if the path cannot be inspected

    """
    try:
        return shutil.disk_usage(path).free
    except OSError as e:
        logger.warning(f"Unable to read free space for {path}: {e}")
        return 0


def get_server_info(config: ServerConfig, logger: logging.Logger) -> dict[str, Any]:
    """Get the server metadata reported by ``/version``.

    Returns
    -------
        Dictionary with the version, free space and shard layout

    """
    return {
        "Version": __version__,
        "FreeSpace": get_free_space(config.library_path, logger),
        "Shards": [shard.to_dict() for shard in config.shards],
    }
