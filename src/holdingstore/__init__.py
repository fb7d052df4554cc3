"""HoldingStore - Write-once object store for music holdings.

Holdings are identified by a UUID4 and laid out on disk in two-character
shards. Tracks can be uploaded until a holding is locked; album art can be
replaced at any time.
"""

__version__ = "0.1.0"
__author__ = "HoldingStore Team"
__email__ = "holdingstore@example.com"

from . import exceptions, logging

__all__ = ["exceptions", "logging"]
