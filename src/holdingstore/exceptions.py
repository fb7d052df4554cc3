"""Common exceptions used across the HoldingStore library."""


class HoldingStoreError(Exception):
    """Base exception for all holding store errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """Initialize the exception with message and optional original error."""
        super().__init__(message)
        self.original_error = original_error
        self.message = message


class InvalidFormatError(HoldingStoreError):
    """Raised when a holding identifier is not a well-formed uuid4."""

    def __init__(self, uuid: object, problem: str) -> None:
        """Initialize with the offending identifier and what is wrong with it."""
        super().__init__(f"{uuid} - {problem}")
        self.uuid = uuid
        self.problem = problem


class TraversalViolationError(HoldingStoreError):
    """Raised when a resolved path escapes its allowed base directory."""

    def __init__(self, base_path: object, target_path: object) -> None:
        """Initialize with the base directory and the rejected target."""
        super().__init__(f"{target_path} is outside of {base_path}")
        self.base_path = base_path
        self.target_path = target_path


class LockedError(HoldingStoreError):
    """Raised when a track is written to a locked holding."""

    def __init__(self, uuid: str) -> None:
        """Initialize with the locked holding's identifier."""
        super().__init__(f"Lock exists for {uuid}")
        self.uuid = uuid


class HoldingNotFoundError(HoldingStoreError):
    """Raised when a holding, or a file inside it, does not exist on disk."""


class StorageIOError(HoldingStoreError):
    """Raised when the underlying filesystem operation fails."""


class ConfigurationError(HoldingStoreError):
    """Raised when there are configuration-related issues."""


class InvalidConfigError(ConfigurationError):
    """Raised when a loaded configuration fails validation."""
