"""Holding storage: object store and holding enumeration."""

from .enumerator import HoldingEnumerator, HoldingSummary
from .object_store import ObjectStore

__all__ = ["HoldingEnumerator", "HoldingSummary", "ObjectStore"]
