"""
MusicStream Configuration System.

Priority order (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Configuration file (YAML)
4. Default values
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)


DEFAULT_API_URL = "http://localhost:9188/api"
DEFAULT_STORAGE_PATH = "~/.musicstream/state.json"

# Valid log levels
VALID_LOG_LEVELS = {"debug", "info", "warning", "error"}

# Environment variable mappings
ENV_MAPPINGS = {
    # API
    "MUSICSTREAM_API_URL": ("api", "base_url"),
    "MUSICSTREAM_API_TIMEOUT": ("api", "timeout"),
    # Storage
    "MUSICSTREAM_STORAGE_PATH": ("storage", "path"),
    # Player
    "MUSICSTREAM_VOLUME": ("player", "default_volume"),
    # Logging
    "MUSICSTREAM_LOG_LEVEL": ("logging", "level"),
}

# Env values converted to float
FLOAT_ENV_VARS = {"MUSICSTREAM_API_TIMEOUT", "MUSICSTREAM_VOLUME"}


class ConfigError(Exception):
    """Configuration error."""

    pass


@dataclass
class APIConfig:
    """Backend API configuration."""

    base_url: str = DEFAULT_API_URL
    timeout: float = 10.0


@dataclass
class StorageConfig:
    """Persistent state configuration."""

    path: str = DEFAULT_STORAGE_PATH

    @property
    def resolved_path(self) -> Path:
        return Path(self.path).expanduser()


@dataclass
class PlayerConfig:
    """Player behaviour configuration."""

    default_volume: float = 0.5
    volume_step: float = 0.1
    seek_step: float = 10.0  # seconds
    restart_threshold: float = 3.0  # seconds into a track before "previous" restarts it
    progress_interval: float = 1.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class Config:
    """Complete MusicStream configuration."""

    api: APIConfig = field(default_factory=APIConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def validate_url(url: str) -> bool:
    """Validate an http(s) URL."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Config) -> None:
    """
    Validate configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    errors = []

    # API
    if not validate_url(str(config.api.base_url)):
        errors.append(f"Invalid API URL: {config.api.base_url}")
    if not _is_number(config.api.timeout) or config.api.timeout <= 0:
        errors.append(f"Invalid API timeout: {config.api.timeout}")

    # Storage
    if not config.storage.path:
        errors.append("Storage path is required")

    # Player
    p = config.player
    if not _is_number(p.default_volume) or not 0 <= p.default_volume <= 1:
        errors.append(f"Invalid default volume: {p.default_volume}. Must be between 0 and 1")
    if not _is_number(p.volume_step) or not 0 < p.volume_step <= 1:
        errors.append(f"Invalid volume step: {p.volume_step}")
    if not _is_number(p.seek_step) or p.seek_step <= 0:
        errors.append(f"Invalid seek step: {p.seek_step}")
    if not _is_number(p.restart_threshold) or p.restart_threshold < 0:
        errors.append(f"Invalid restart threshold: {p.restart_threshold}")
    if not _is_number(p.progress_interval) or p.progress_interval <= 0:
        errors.append(f"Invalid progress interval: {p.progress_interval}")

    # Logging
    if str(config.logging.level).lower() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid log level: {config.logging.level}. "
            f"Valid values: {sorted(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigError("Configuration validation failed:\n  - " + "\n  - ".join(errors))


def load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML config: {e}")
    except IOError as e:
        raise ConfigError(f"Error reading config file: {e}")

    if not data:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value using a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def load_env_config() -> dict:
    """
    Load configuration from environment variables.

    Returns:
        Configuration dictionary with values from environment
    """
    result: dict = {}

    for env_var, path in ENV_MAPPINGS.items():
        value: Any = os.environ.get(env_var)
        if value is None:
            continue

        if env_var in FLOAT_ENV_VARS:
            try:
                value = float(value)
            except ValueError:
                logger.warning(f"Invalid number for {env_var}: {value}")
                continue

        _set_nested(result, path, value)

    return result


def _deep_merge(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def merge_configs(*configs: dict) -> dict:
    """
    Deep merge multiple configuration dictionaries.
    Later configs override earlier ones.
    """
    result: dict = {}
    for config in configs:
        _deep_merge(result, config)
    return result


def dict_to_config(d: dict) -> Config:
    """Convert a dictionary to Config dataclass."""
    config = Config()

    # API
    if "api" in d:
        a = d["api"] or {}
        config.api.base_url = a.get("base_url", config.api.base_url)
        config.api.timeout = a.get("timeout", config.api.timeout)

    # Storage
    if "storage" in d:
        config.storage.path = (d["storage"] or {}).get("path", config.storage.path)

    # Player
    if "player" in d:
        p = d["player"] or {}
        config.player.default_volume = p.get("default_volume", config.player.default_volume)
        config.player.volume_step = p.get("volume_step", config.player.volume_step)
        config.player.seek_step = p.get("seek_step", config.player.seek_step)
        config.player.restart_threshold = p.get(
            "restart_threshold", config.player.restart_threshold
        )
        config.player.progress_interval = p.get(
            "progress_interval", config.player.progress_interval
        )

    # Logging
    if "logging" in d:
        config.logging.level = (d["logging"] or {}).get("level", config.logging.level)

    return config


def load_config(
    config_path: Optional[Path] = None,
    cli_args: Optional[dict] = None,
) -> Config:
    """
    Load configuration from all sources.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Defaults

    Args:
        config_path: Path to YAML config file
        cli_args: Dictionary of CLI arguments

    Returns:
        Merged Config object

    Raises:
        ConfigError: If configuration is invalid
    """
    configs = []

    if config_path:
        file_config = load_yaml_config(config_path)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_path}")

    env_config = load_env_config()
    if env_config:
        configs.append(env_config)
        logger.debug("Loaded config from environment variables")

    if cli_args:
        configs.append(cli_args)
        logger.debug("Loaded config from CLI arguments")

    merged = merge_configs(*configs) if configs else {}
    config = dict_to_config(merged)
    validate_config(config)

    return config
