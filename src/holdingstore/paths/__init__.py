"""Holding identifier validation and path resolution."""

from .path_resolver import PathResolver, ensure_safe, validate_uuid

__all__ = ["PathResolver", "ensure_safe", "validate_uuid"]
