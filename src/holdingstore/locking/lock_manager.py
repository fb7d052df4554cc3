"""Lock marker management for holdings.

A holding is locked by the presence of a zero-byte ``lock`` file inside its
directory. There is deliberately no unlock operation: removing the marker is
an operator action performed directly on the filesystem.
"""

import logging

from holdingstore.exceptions import HoldingNotFoundError, StorageIOError
from holdingstore.paths import PathResolver


class LockManager:
    """Creates and queries holding lock markers."""

    def __init__(self, resolver: PathResolver, logger: logging.Logger) -> None:
        """Initialize the LockManager.

        Args:
            resolver: Path resolver bound to the library root
            logger: Logger instance for logging operations

        """
        self.resolver = resolver
        self.logger = logger

    def lock(self, uuid: str) -> None:
        """Create the lock marker for a holding.

        Locking an already locked holding succeeds without changing anything.
        Only existing holdings can be locked; a holding is created by its
        first upload.

        Raises:
            InvalidFormatError: If the identifier is malformed
            TraversalViolationError: If the marker would land outside the library
            HoldingNotFoundError: If the holding does not exist
            StorageIOError: If the marker cannot be created

        """
        uuid = self.resolver.validate(uuid)
        lock_file = self.resolver.ensure_safe(self.resolver.lock_path(uuid))

        if not lock_file.parent.is_dir():
            error_msg = f"Holding not found: {uuid}"
            self.logger.warning(f"Refusing to lock {uuid}: holding does not exist.")
            raise HoldingNotFoundError(error_msg)

        if lock_file.exists():
            self.logger.info(f"Holding {uuid} is already locked.")
            return

        try:
            lock_file.touch(exist_ok=True)
        except OSError as e:
            error_msg = f"Failed to create lock for {uuid}: {e}"
            self.logger.exception(error_msg)
            raise StorageIOError(error_msg, e) from e

        self.logger.info(f"Created lock for {uuid}.")

    def is_locked(self, uuid: str) -> bool:
        """Return True if the holding's lock marker exists."""
        return self.resolver.lock_path(uuid).exists()
