"""Utility functions for server operations."""

from .common import get_free_space, get_server_info

__all__ = ["get_free_space", "get_server_info"]
