"""Configuration loading for the park finder."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .geocoding import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .logger import DEFAULT_BACKUP_COUNT, DEFAULT_LOG_LEVEL, DEFAULT_MAX_BYTES, get_logger

logger = get_logger(__name__)

ENV_PREFIX = "PARKFINDER"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


@dataclass
class GeocoderConfig:
    """Postcode lookup service settings."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        """Apply environment variable overrides."""
        url_override = os.environ.get(f"{ENV_PREFIX}_GEOCODER_URL")
        if url_override:
            logger.debug("Overriding geocoder URL from environment")
            self.base_url = url_override

        timeout_override = os.environ.get(f"{ENV_PREFIX}_GEOCODER_TIMEOUT")
        if timeout_override:
            try:
                self.timeout = float(timeout_override)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid {ENV_PREFIX}_GEOCODER_TIMEOUT: {timeout_override!r}"
                ) from e

        if self.timeout <= 0:
            raise ConfigurationError(f"Geocoder timeout must be positive, got {self.timeout}")


@dataclass
class LoggingConfig:
    """Logging settings."""

    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str | None = None
    log_format: str = "text"
    max_file_size: int = DEFAULT_MAX_BYTES
    backup_count: int = DEFAULT_BACKUP_COUNT

    def __post_init__(self):
        level_override = os.environ.get(f"{ENV_PREFIX}_LOG_LEVEL")
        if level_override:
            self.log_level = level_override

        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        if self.log_format not in ("text", "json"):
            raise ConfigurationError(f"Unknown log format: {self.log_format}")


@dataclass
class Settings:
    """Top-level settings loaded from config.yaml."""

    catalog_file: Path
    geocoder: GeocoderConfig = field(default_factory=GeocoderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    config_dir: Path = field(default_factory=Path.cwd)


def load_settings(config_path: Path) -> Settings:
    """
    Load settings from a YAML file.

    Relative ``catalog_file`` paths are resolved against the directory
    holding the config file.

    Args:
        config_path: Path to config.yaml

    Returns:
        Settings object

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError("Config file must contain a mapping")

    config_dir = config_path.parent
    settings = parse_settings(raw, config_dir)
    logger.debug(f"Loaded settings from {config_path}")
    return settings


def parse_settings(raw: dict, config_dir: Path) -> Settings:
    """Build Settings from a parsed config mapping."""
    catalog_file = Path(raw.get("catalog_file", "data/parks.yaml"))
    if not catalog_file.is_absolute():
        catalog_file = config_dir / catalog_file

    geocoder_raw = raw.get("geocoder") or {}
    logging_raw = raw.get("logging") or {}

    try:
        geocoder = GeocoderConfig(
            base_url=geocoder_raw.get("base_url", DEFAULT_BASE_URL),
            timeout=float(geocoder_raw.get("timeout", DEFAULT_TIMEOUT)),
            user_agent=geocoder_raw.get("user_agent", DEFAULT_USER_AGENT),
        )
        logging_cfg = LoggingConfig(
            log_level=str(logging_raw.get("log_level", DEFAULT_LOG_LEVEL)),
            log_file=logging_raw.get("log_file"),
            log_format=str(logging_raw.get("log_format", "text")).lower(),
            max_file_size=int(logging_raw.get("max_file_size", DEFAULT_MAX_BYTES)),
            backup_count=int(logging_raw.get("backup_count", DEFAULT_BACKUP_COUNT)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration value: {e}") from e

    return Settings(
        catalog_file=catalog_file,
        geocoder=geocoder,
        logging=logging_cfg,
        config_dir=config_dir,
    )
