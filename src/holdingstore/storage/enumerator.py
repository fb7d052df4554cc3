"""Enumeration of holdings and holding summaries."""

import logging
from dataclasses import dataclass, field
from typing import Any

from holdingstore.exceptions import HoldingNotFoundError, StorageIOError
from holdingstore.locking import LockManager
from holdingstore.paths import PathResolver
from holdingstore.storage.object_store import ObjectStore


@dataclass
class HoldingSummary:
    """Contents and flags of a single holding."""

    file_list: list[str] = field(default_factory=list)
    has_artwork: bool = False
    locked: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation used by the HTTP API."""
        return {
            "FileList": list(self.file_list),
            "HasArtwork": self.has_artwork,
            "Locked": self.locked,
        }


class HoldingEnumerator:
    """Lists holdings across shards and describes individual holdings."""

    def __init__(
        self,
        resolver: PathResolver,
        lock_manager: LockManager,
        object_store: ObjectStore,
        logger: logging.Logger,
    ) -> None:
        """Initialize the HoldingEnumerator.

        Args:
            resolver: Path resolver bound to the library root
            lock_manager: Lock manager used for the locked flag
            object_store: Object store used for track listings
            logger: Logger instance for logging operations

        """
        self.resolver = resolver
        self.lock_manager = lock_manager
        self.object_store = object_store
        self.logger = logger

    def list_all_uuids(self) -> list[str]:
        """Return the names of every holding directory in every shard.

        Names are not validated again; they were validated when the holding
        was first written. A library root that does not exist yet holds no
        holdings.

        Raises:
            StorageIOError: If a shard or the library root cannot be read

        """
        library_path = self.resolver.library_path
        if not library_path.exists():
            return []

        uuids = []
        try:
            for shard in sorted(library_path.iterdir()):
                if not shard.is_dir():
                    continue
                uuids.extend(sorted(entry.name for entry in shard.iterdir()))
        except OSError as e:
            error_msg = f"Failed to enumerate holdings in {library_path}: {e}"
            self.logger.exception(error_msg)
            raise StorageIOError(error_msg, e) from e

        return uuids

    def describe_holding(self, uuid: str) -> HoldingSummary:
        """Summarize a holding's tracks, album art and lock state.

        Raises:
            InvalidFormatError: If the identifier is malformed
            HoldingNotFoundError: If the holding directory does not exist

        """
        uuid = self.resolver.validate(uuid)
        if not self.object_store.holding_exists(uuid):
            error_msg = f"Holding not found: {uuid}"
            raise HoldingNotFoundError(error_msg)

        return HoldingSummary(
            file_list=self.object_store.list_tracks(uuid),
            has_artwork=self.resolver.artwork_path(uuid).exists(),
            locked=self.lock_manager.is_locked(uuid),
        )
