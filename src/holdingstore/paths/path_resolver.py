"""Holding identifier validation and on-disk path derivation."""

import re
from pathlib import Path

from holdingstore.exceptions import InvalidFormatError, TraversalViolationError

UUID_LENGTH = 36
SHARD_PREFIX_LENGTH = 2

UUID4_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}",
    re.IGNORECASE,
)

TRACK_DIRNAME = "music"
ARTWORK_FILENAME = "albumart"
LOCK_FILENAME = "lock"


def validate_uuid(uuid_candidate: object) -> str:
    """Validate a holding identifier and return its canonical lower-case form.

    Args:
        uuid_candidate: Value supplied by the caller

    Returns:
        The identifier in lower case

    Raises:
        InvalidFormatError: If the value is not a 36 character uuid4 string

    """
    if not isinstance(uuid_candidate, str) or len(uuid_candidate) != UUID_LENGTH:
        raise InvalidFormatError(uuid_candidate, "Invalid length")
    if UUID4_PATTERN.fullmatch(uuid_candidate) is None:
        raise InvalidFormatError(uuid_candidate, "Invalid uuid4 format")
    return uuid_candidate.lower()


def ensure_safe(base_path: Path, candidate_path: Path) -> Path:
    """Resolve ``candidate_path`` and require it to live under ``base_path``.

    Both paths are made absolute with symlinks and ``..`` collapsed, then
    compared component by component, so a base of ``/data/lib`` does not
    accept ``/data/library2/x``.

    Returns:
        The resolved candidate path

    Raises:
        TraversalViolationError: If the candidate escapes the base directory

    """
    resolved_base = Path(base_path).resolve()
    try:
        resolved = Path(candidate_path).resolve()
    except ValueError as e:
        # embedded null bytes
        raise TraversalViolationError(base_path, candidate_path) from e
    if not resolved.is_relative_to(resolved_base):
        raise TraversalViolationError(base_path, candidate_path)
    return resolved


class PathResolver:
    """Maps holding identifiers and relative paths onto the library root."""

    def __init__(self, library_path: Path) -> None:
        """Initialize the resolver.

        Args:
            library_path: Root directory of the library

        """
        self.library_path = Path(library_path)

    def validate(self, uuid_candidate: object) -> str:
        """Validate a holding identifier. See :func:`validate_uuid`."""
        return validate_uuid(uuid_candidate)

    def ensure_safe(self, candidate_path: Path, base_path: Path | None = None) -> Path:
        """Check containment against ``base_path``, defaulting to the library root."""
        return ensure_safe(
            self.library_path if base_path is None else base_path,
            candidate_path,
        )

    def shard_path(self, uuid: str) -> Path:
        """Return the shard directory a holding lives in."""
        uuid = self.validate(uuid)
        return self.library_path / uuid[:SHARD_PREFIX_LENGTH]

    def holding_path(self, uuid: str) -> Path:
        """Return ``root / uuid[0:2] / uuid``."""
        uuid = self.validate(uuid)
        return self.library_path / uuid[:SHARD_PREFIX_LENGTH] / uuid

    def track_root(self, uuid: str) -> Path:
        """Return the directory holding a holding's tracks."""
        return self.holding_path(uuid) / TRACK_DIRNAME

    def artwork_path(self, uuid: str) -> Path:
        """Return the location of a holding's album art."""
        return self.holding_path(uuid) / ARTWORK_FILENAME

    def lock_path(self, uuid: str) -> Path:
        """Return the location of a holding's lock marker."""
        return self.holding_path(uuid) / LOCK_FILENAME

    def track_path(self, uuid: str, relative_path: str) -> Path:
        """Resolve a caller-supplied track path inside the holding's track area.

        Args:
            uuid: Holding identifier
            relative_path: Slash separated path below ``music/``

        Returns:
            The resolved, contained file path

        Raises:
            InvalidFormatError: If the identifier is malformed
            TraversalViolationError: If the path escapes the track area or
                names the track area itself

        """
        track_root = self.track_root(uuid)
        resolved = ensure_safe(track_root, track_root / relative_path)
        if resolved == track_root.resolve():
            raise TraversalViolationError(track_root, relative_path)
        return resolved
