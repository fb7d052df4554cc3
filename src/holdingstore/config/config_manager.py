"""Configuration management for the holding store server."""

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from holdingstore.exceptions import ConfigurationError, InvalidConfigError

DEFAULT_PORT = 8080
DEFAULT_API_USER = "admin"
DEFAULT_API_KEY = "hunter2"
DEFAULT_LIBRARY_PATH = "/tmp/library"  # noqa: S108
FULL_RANGE_MIN_UUID = "00000000-0000-0000-0000-000000000000"
FULL_RANGE_MAX_UUID = "ffffffff-ffff-ffff-ffff-ffffffffffff"

ENV_API_USER = "HOLDINGSTORE_API_USER"
ENV_API_KEY = "HOLDINGSTORE_API_KEY"

MAX_PORT = 65535

# Shard bounds are plain UUIDs, not uuid4: the full range starts at all zeros
UUID_BOUND_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ShardDescriptor:
    """A UUID range served by this library.

    Shards are reported to clients through ``/version`` only. Uploads are not
    checked against the ranges.
    """

    min_uuid: str
    max_uuid: str
    writable: bool = True

    def __post_init__(self) -> None:
        """Validate the UUID bounds."""
        for bound_name in ("min_uuid", "max_uuid"):
            value = getattr(self, bound_name)
            if not isinstance(value, str) or not UUID_BOUND_PATTERN.fullmatch(value):
                error_msg = f"Shard field '{bound_name}' is not a UUID: {value!r}"
                raise InvalidConfigError(error_msg)
        if self.min_uuid.lower() > self.max_uuid.lower():
            error_msg = f"Shard range is empty: {self.min_uuid} > {self.max_uuid}"
            raise InvalidConfigError(error_msg)

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation used by ``/version``."""
        return {
            "MinUUID": self.min_uuid,
            "MaxUUID": self.max_uuid,
            "Writable": self.writable,
        }


def full_range_shard() -> ShardDescriptor:
    """Return a single writable shard covering every UUID."""
    return ShardDescriptor(FULL_RANGE_MIN_UUID, FULL_RANGE_MAX_UUID, writable=True)


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the holding store server."""

    library_path: Path
    api_user: str = DEFAULT_API_USER
    api_key: str = DEFAULT_API_KEY
    port: int = DEFAULT_PORT
    shards: tuple[ShardDescriptor, ...] = field(
        default_factory=lambda: (full_range_shard(),),
    )

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not str(self.library_path).strip():
            error_msg = "Required field 'library_path' cannot be empty"
            raise InvalidConfigError(error_msg)
        for field_name in ("api_user", "api_key"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value:
                error_msg = f"Required field '{field_name}' cannot be empty"
                raise InvalidConfigError(error_msg)
        if (
            isinstance(self.port, bool)
            or not isinstance(self.port, int)
            or not 0 < self.port <= MAX_PORT
        ):
            error_msg = f"Invalid port: {self.port}"
            raise InvalidConfigError(error_msg)


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in ``data``."""
    for key in keys:
        if key in data:
            return data[key]
    return default


class ConfigManager:
    """Builds ServerConfig instances from files, flags and env files."""

    @staticmethod
    def load_config(config_path: str | Path) -> ServerConfig:
        """Load and validate configuration from a YAML or JSON file.

        Both ``snake_case`` keys and the CamelCase keys of older JSON config
        files (``LibraryPath``, ``ApiUser``, ``Shards`` ...) are accepted.

        Args:
            config_path: Path to the configuration file

        Returns:
            Validated ServerConfig instance

        Raises:
            ConfigurationError: If the file cannot be read or parsed
            InvalidConfigError: If the configuration is invalid

        """
        try:
            with Path(config_path).open(encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except FileNotFoundError as e:
            error_msg = f"Configuration file not found: {config_path}"
            raise ConfigurationError(error_msg, e) from e
        except yaml.YAMLError as e:
            error_msg = f"Invalid configuration file format: {e}"
            raise ConfigurationError(error_msg, e) from e
        except OSError as e:
            error_msg = f"Error loading configuration: {e}"
            raise ConfigurationError(error_msg, e) from e

        if not isinstance(config_data, dict):
            error_msg = f"Configuration file must contain a mapping: {config_path}"
            raise InvalidConfigError(error_msg)

        return ConfigManager.from_dict(config_data)

    @staticmethod
    def from_dict(config_data: dict[str, Any]) -> ServerConfig:
        """Build a ServerConfig from an already parsed mapping.

        Raises:
            InvalidConfigError: If a required field is missing or invalid

        """
        library_path = _pick(config_data, "library_path", "LibraryPath")
        if library_path is None:
            error_msg = "Missing required configuration field: 'library_path'"
            raise InvalidConfigError(error_msg)
        if isinstance(library_path, str) and not library_path.strip():
            error_msg = "Required field 'library_path' cannot be empty"
            raise InvalidConfigError(error_msg)

        shards_data = _pick(config_data, "shards", "Shards")
        try:
            shards = (
                (full_range_shard(),)
                if shards_data is None
                else tuple(
                    ShardDescriptor(
                        min_uuid=_pick(shard, "min_uuid", "MinUUID"),
                        max_uuid=_pick(shard, "max_uuid", "MaxUUID"),
                        writable=bool(_pick(shard, "writable", "Writable", default=True)),
                    )
                    for shard in shards_data
                )
            )

            return ServerConfig(
                library_path=Path(library_path),
                api_user=_pick(config_data, "api_user", "ApiUser", default=DEFAULT_API_USER),
                api_key=_pick(config_data, "api_key", "ApiKey", default=DEFAULT_API_KEY),
                port=int(_pick(config_data, "port", "Port", default=DEFAULT_PORT)),
                shards=shards,
            )
        except InvalidConfigError:
            raise
        except (TypeError, ValueError, AttributeError) as e:
            error_msg = f"Configuration validation failed: {e}"
            raise InvalidConfigError(error_msg, e) from e

    @staticmethod
    def from_defaults(
        library_path: str | Path = DEFAULT_LIBRARY_PATH,
        api_user: str = DEFAULT_API_USER,
        api_key: str = DEFAULT_API_KEY,
        port: int = DEFAULT_PORT,
    ) -> ServerConfig:
        """Build a configuration from command line values.

        Custom shard layouts need a configuration file; this always serves
        the full UUID range as one writable shard.
        """
        config_data = ConfigManager.get_default_config()
        config_data.update(
            library_path=library_path,
            api_user=api_user,
            api_key=api_key,
            port=port,
        )
        return ConfigManager.from_dict(config_data)

    @staticmethod
    def apply_env_file(config: ServerConfig, env_file: str | Path) -> ServerConfig:
        """Override API credentials from a dotenv file.

        Reads ``HOLDINGSTORE_API_USER`` and ``HOLDINGSTORE_API_KEY``; keys that
        are absent or empty leave the configured value untouched.

        Raises:
            ConfigurationError: If the env file does not exist

        """
        env_path = Path(env_file)
        if not env_path.exists():
            error_msg = f"Environment file not found: {env_path}"
            raise ConfigurationError(error_msg)

        env_config = dotenv_values(env_path)
        overrides = {}
        if env_config.get(ENV_API_USER):
            overrides["api_user"] = env_config[ENV_API_USER]
        if env_config.get(ENV_API_KEY):
            overrides["api_key"] = env_config[ENV_API_KEY]
        return replace(config, **overrides)

    @staticmethod
    def get_default_config() -> dict[str, Any]:
        """Get a template configuration dictionary."""
        return {
            "port": DEFAULT_PORT,
            "api_user": DEFAULT_API_USER,
            "api_key": DEFAULT_API_KEY,
            "library_path": DEFAULT_LIBRARY_PATH,
            "shards": [
                {
                    "min_uuid": FULL_RANGE_MIN_UUID,
                    "max_uuid": FULL_RANGE_MAX_UUID,
                    "writable": True,
                },
            ],
        }
