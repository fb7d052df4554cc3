"""Server configuration loading and validation."""

from .config_manager import ConfigManager, ServerConfig, ShardDescriptor

__all__ = ["ConfigManager", "ServerConfig", "ShardDescriptor"]
