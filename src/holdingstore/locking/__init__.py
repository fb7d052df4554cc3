"""Per-holding lock markers."""

from .lock_manager import LockManager

__all__ = ["LockManager"]
