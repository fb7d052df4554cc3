"""HTTP server exposing the holding store."""

from .app import create_app

__all__ = ["create_app"]
