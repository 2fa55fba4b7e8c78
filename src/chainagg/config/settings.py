"""Global settings management."""

import logging
from pathlib import Path

from chainagg.config.loader import ConfigLoader
from chainagg.config.schemas import (
    AggregationConfig,
    DatabaseConfig,
    LoggingConfig,
    ProtocolDefaults,
    SettingsConfig,
)

logger = logging.getLogger(__name__)

# Default config directory (relative to working directory)
DEFAULT_CONFIG_DIR = Path("config")


class Settings:
    """
    Central settings manager.

    Loads and validates ``settings.yaml`` from the configuration directory and
    provides typed access to its sections. Only the command line and process
    wiring read settings; the aggregation core receives explicit config
    objects through its context.
    """

    def __init__(self, config_dir: Path | str = DEFAULT_CONFIG_DIR):
        self.config_dir = Path(config_dir)
        self._loader = ConfigLoader(self.config_dir)
        self._settings: SettingsConfig | None = None

    @property
    def settings(self) -> SettingsConfig:
        """Get global settings."""
        if self._settings is None:
            if not self.config_dir.exists():
                logger.warning(
                    f"Config directory not found: {self.config_dir}. "
                    "Using default settings."
                )
            try:
                raw = self._loader.load("settings")
                self._settings = SettingsConfig(**raw)
            except FileNotFoundError:
                logger.info("No settings.yaml found, using defaults")
                self._settings = SettingsConfig()
        return self._settings

    @property
    def database(self) -> DatabaseConfig:
        """Shortcut to database settings."""
        return self.settings.database

    @property
    def logging_config(self) -> LoggingConfig:
        """Shortcut to logging settings."""
        return self.settings.logging

    @property
    def aggregation(self) -> AggregationConfig:
        """Shortcut to aggregation settings."""
        return self.settings.aggregation

    @property
    def protocol(self) -> ProtocolDefaults:
        """Shortcut to protocol default addresses."""
        return self.settings.protocol

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._loader.clear_cache()
        self._settings = None
        logger.info("Configuration reloaded")

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        config = self.logging_config
        logging.basicConfig(
            level=getattr(logging, config.level.upper()),
            format=config.format,
            filename=config.file,
        )


# Global settings instance
_settings: Settings | None = None


def get_settings(config_dir: Path | str | None = None) -> Settings:
    """
    Get the global settings instance.

    Args:
        config_dir: Optional config directory (only used on first call)
    """
    global _settings
    if _settings is None:
        _settings = Settings(config_dir or DEFAULT_CONFIG_DIR)
    return _settings


def reset_settings() -> None:
    """Reset global settings (mainly for testing)."""
    global _settings
    _settings = None
