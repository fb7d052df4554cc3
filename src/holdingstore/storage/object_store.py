"""Track and album art storage for holdings."""

import logging
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

from holdingstore.exceptions import (
    HoldingNotFoundError,
    LockedError,
    StorageIOError,
    TraversalViolationError,
)
from holdingstore.locking import LockManager
from holdingstore.paths import PathResolver

FILE_MODE = 0o644
STAGING_PREFIX = ".upload-"
STALE_STAGING_SECONDS = 3600


class ObjectStore:
    """Reads, writes and lists the files that make up a holding.

    Uploads are staged next to the holding and renamed into place, so two
    writers racing on the same path leave one complete file behind. Track
    uploads check the lock marker before staging and again right before the
    rename. A lock created after that second check does not stop the upload.

    A process that dies mid-upload leaves its ``.upload-*`` staging file in
    the holding directory. Staging files older than an hour are removed on
    the next write to the same holding.
    """

    def __init__(
        self,
        resolver: PathResolver,
        lock_manager: LockManager,
        logger: logging.Logger,
    ) -> None:
        """Initialize the ObjectStore.

        Args:
            resolver: Path resolver bound to the library root
            lock_manager: Lock manager sharing the same resolver
            logger: Logger instance for logging operations

        """
        self.resolver = resolver
        self.lock_manager = lock_manager
        self.logger = logger

    def put_track(self, uuid: str, relative_path: str, content: bytes) -> int:
        """Write a track, replacing any existing file at the same path.

        Args:
            uuid: Holding identifier
            relative_path: Slash separated path below the holding's ``music/``
            content: Complete file content

        Returns:
            Number of bytes written

        Raises:
            InvalidFormatError: If the identifier is malformed
            LockedError: If the holding is locked
            TraversalViolationError: If the path escapes the track area
            StorageIOError: If the file cannot be written

        """
        uuid = self.resolver.validate(uuid)
        self._refuse_if_locked(uuid)

        try:
            destination = self.resolver.track_path(uuid, relative_path)
        except TraversalViolationError as e:
            self.logger.warning(f"Rejected track upload for {uuid}: {e}")
            raise

        written = self._write_file(
            uuid,
            destination,
            content,
            before_replace=lambda: self._refuse_if_locked(uuid),
        )
        self.logger.info(f"Uploaded {written} bytes to {uuid}/music/{relative_path}")
        return written

    def put_artwork(self, uuid: str, content: bytes) -> int:
        """Write a holding's album art. Allowed whether or not it is locked.

        Returns:
            Number of bytes written

        Raises:
            InvalidFormatError: If the identifier is malformed
            TraversalViolationError: If the artwork path escapes the library
            StorageIOError: If the file cannot be written

        """
        uuid = self.resolver.validate(uuid)
        destination = self.resolver.ensure_safe(self.resolver.artwork_path(uuid))

        written = self._write_file(uuid, destination, content)
        self.logger.info(f"Uploaded {written} bytes of album art to {uuid}")
        return written

    def get_track(self, uuid: str, relative_path: str) -> Path:
        """Return the on-disk location of a track for the transport to serve.

        Raises:
            InvalidFormatError: If the identifier is malformed
            HoldingNotFoundError: If the holding or the track does not exist
            TraversalViolationError: If the path escapes the track area

        """
        uuid = self._require_holding(uuid)
        track = self.resolver.track_path(uuid, relative_path)
        if not track.is_file():
            error_msg = f"Track not found: {uuid}/music/{relative_path}"
            raise HoldingNotFoundError(error_msg)
        return track

    def get_artwork(self, uuid: str) -> Path:
        """Return the on-disk location of a holding's album art.

        Raises:
            InvalidFormatError: If the identifier is malformed
            HoldingNotFoundError: If the holding or its album art does not exist

        """
        uuid = self._require_holding(uuid)
        artwork = self.resolver.ensure_safe(self.resolver.artwork_path(uuid))
        if not artwork.is_file():
            error_msg = f"Album art not found for {uuid}"
            raise HoldingNotFoundError(error_msg)
        return artwork

    def read_track(self, uuid: str, relative_path: str) -> bytes:
        """Return the content of a track."""
        return self._read_file(uuid, self.get_track(uuid, relative_path))

    def read_artwork(self, uuid: str) -> bytes:
        """Return the content of a holding's album art."""
        return self._read_file(uuid, self.get_artwork(uuid))

    def list_tracks(self, uuid: str) -> list[str]:
        """List every track below a holding's ``music/`` directory.

        Paths are slash separated, relative to ``music/`` and sorted. A
        holding without any tracks yields an empty list.
        """
        track_root = self.resolver.track_root(uuid)
        if not track_root.is_dir():
            return []

        tracks = []
        for dirpath, _dirnames, filenames in os.walk(track_root):
            directory = Path(dirpath)
            for filename in filenames:
                tracks.append((directory / filename).relative_to(track_root).as_posix())
        return sorted(tracks)

    def holding_exists(self, uuid: str) -> bool:
        """Return True if the holding's directory exists."""
        return self.resolver.holding_path(uuid).is_dir()

    def _require_holding(self, uuid: str) -> str:
        uuid = self.resolver.validate(uuid)
        if not self.holding_exists(uuid):
            error_msg = f"Holding not found: {uuid}"
            raise HoldingNotFoundError(error_msg)
        return uuid

    def _refuse_if_locked(self, uuid: str) -> None:
        if self.lock_manager.is_locked(uuid):
            error = LockedError(uuid)
            self.logger.warning(error.message)
            raise error

    def _remove_stale_staging(self, uuid: str, holding_dir: Path) -> None:
        """Delete staging files left behind by uploads that never finished."""
        cutoff = time.time() - STALE_STAGING_SECONDS
        for staging in holding_dir.glob(f"{STAGING_PREFIX}*"):
            try:
                if staging.stat().st_mtime < cutoff:
                    staging.unlink(missing_ok=True)
                    self.logger.info(f"Removed stale staging file {staging.name} from {uuid}.")
            except OSError as e:
                self.logger.warning(f"Could not remove stale staging file {staging}: {e}")

    def _write_file(
        self,
        uuid: str,
        destination: Path,
        content: bytes,
        before_replace: Callable[[], None] | None = None,
    ) -> int:
        """Stage ``content`` inside the holding directory and rename it into place."""
        holding_dir = self.resolver.holding_path(uuid)
        try:
            holding_dir.mkdir(parents=True, exist_ok=True)
            self._remove_stale_staging(uuid, holding_dir)
            destination.parent.mkdir(parents=True, exist_ok=True)

            fd, staging_name = tempfile.mkstemp(prefix=STAGING_PREFIX, dir=holding_dir)
            staging = Path(staging_name)
            try:
                with os.fdopen(fd, "wb") as staging_file:
                    staging_file.write(content)
                staging.chmod(FILE_MODE)
                if before_replace is not None:
                    before_replace()
                os.replace(staging, destination)
            finally:
                # Already gone once the rename succeeded
                staging.unlink(missing_ok=True)

        except OSError as e:
            error_msg = f"Failed to write {destination} for {uuid}: {e}"
            self.logger.exception(error_msg)
            raise StorageIOError(error_msg, e) from e

        return len(content)

    def _read_file(self, uuid: str, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            error_msg = f"Failed to read {path} for {uuid}: {e}"
            self.logger.exception(error_msg)
            raise StorageIOError(error_msg, e) from e
