"""
PageDeck - Configuration Manager

This module provides centralized JSON-based configuration management.
It handles loading, saving, and upgrading settings between versions.
"""

import copy
import json
import os
from typing import Any, Final

from pagedeck.config import (
    CONFIG_DIR,
    DEFAULT_API_BASE_URL,
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_WIDTH,
)
from pagedeck.constants import (
    DEFAULT_CELL_GAP_PX,
    DEFAULT_FOOTER_HEIGHT_PX,
    DEFAULT_MAX_COLUMNS,
    DEFAULT_MIN_CELL_WIDTH_PX,
    DEFAULT_OVERSCAN_ROWS,
    DEFAULT_PRELOAD_MARGIN_PX,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_THUMBNAIL_CACHE_SIZE,
    DEFAULT_THUMBNAIL_WIDTH_PX,
    DEFAULT_THUMBNAIL_WORKERS,
)
from pagedeck.utils.exceptions import ConfigurationError
from pagedeck.utils.logger import logger

# Configuration file path
CONFIG_FILE_PATH: Final[str] = os.path.join(CONFIG_DIR, "settings.json")

# Default configuration values
DEFAULT_CONFIG: Final[dict[str, Any]] = {
    "version": 1,
    "viewport": {
        "min_cell_width": DEFAULT_MIN_CELL_WIDTH_PX,
        "max_columns": DEFAULT_MAX_COLUMNS,
        "cell_gap": DEFAULT_CELL_GAP_PX,
        "footer_height": DEFAULT_FOOTER_HEIGHT_PX,
        "overscan_rows": DEFAULT_OVERSCAN_ROWS,
        "preload_margin": DEFAULT_PRELOAD_MARGIN_PX,
    },
    "api": {
        "base_url": DEFAULT_API_BASE_URL,
        "timeout": DEFAULT_REQUEST_TIMEOUT_SECONDS,
        # "auth_token" intentionally omitted; cookie sessions need none
    },
    "thumbnails": {
        "width": DEFAULT_THUMBNAIL_WIDTH_PX,
        "cache_size": DEFAULT_THUMBNAIL_CACHE_SIZE,
        "workers": DEFAULT_THUMBNAIL_WORKERS,
    },
    "window": {
        "width": DEFAULT_WINDOW_WIDTH,
        "height": DEFAULT_WINDOW_HEIGHT,
    },
}


class ConfigManager:
    """Manages application configuration in JSON format.

    This class provides a centralized way to load, save, and access
    configuration settings. Missing keys are filled from DEFAULT_CONFIG
    whenever the stored version is older than the current one.
    """

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize the configuration manager.

        Args:
            config_path: Optional path to the configuration file.
                        Defaults to CONFIG_FILE_PATH.
        """
        self.config_path = config_path or CONFIG_FILE_PATH
        self._config: dict[str, Any] = {}

        os.makedirs(os.path.dirname(self.config_path), exist_ok=True)

        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file or create default."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    self._config = json.load(f)
                logger.info("Configuration loaded from JSON")

                self._upgrade_config()

            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error loading config: {e}")
                self._config = self._get_default_config()
        else:
            self._config = self._get_default_config()
            self.save()

    def _get_default_config(self) -> dict[str, Any]:
        """Get a deep copy of the default configuration."""
        return copy.deepcopy(DEFAULT_CONFIG)

    def _upgrade_config(self) -> None:
        """Upgrade configuration to latest version if needed."""
        current_version = self._config.get("version", 0)

        if current_version < DEFAULT_CONFIG["version"]:
            self._merge_defaults(self._config, DEFAULT_CONFIG)
            self._config["version"] = DEFAULT_CONFIG["version"]
            logger.info(f"Configuration upgraded to version {DEFAULT_CONFIG['version']}")

    def _merge_defaults(self, config: dict, defaults: dict) -> None:
        """Merge default values into config for missing keys.

        Args:
            config: Current configuration dictionary.
            defaults: Default configuration dictionary.
        """
        for key, value in defaults.items():
            if key not in config:
                config[key] = copy.deepcopy(value)
            elif isinstance(value, dict) and isinstance(config.get(key), dict):
                self._merge_defaults(config[key], value)

    def save(self) -> bool:
        """Save configuration to file.

        Returns:
            True if save was successful, False otherwise.
        """
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2, ensure_ascii=False)
            logger.debug("Configuration saved to JSON")
            return True
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            return False

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a configuration value by dot-separated path.

        Args:
            key_path: Dot-separated path to the config value (e.g., "viewport.cell_gap")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split(".")
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_int(self, key_path: str, default: int, minimum: int = 0) -> int:
        """Get an integer setting, rejecting values that are not whole numbers.

        Raises:
            ConfigurationError: If the stored value is not an integer or is below minimum
        """
        value = self.get(key_path, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(key_path, f"expected an integer, got {value!r}")
        if value < minimum:
            raise ConfigurationError(key_path, f"must be >= {minimum}, got {value}")
        return value

    def set(self, key_path: str, value: Any, save_immediately: bool = True) -> None:
        """Set a configuration value by dot-separated path.

        Args:
            key_path: Dot-separated path to the config value
            value: Value to set
            save_immediately: Whether to save to file immediately
        """
        keys = key_path.split(".")
        config = self._config

        for key in keys[:-1]:
            if key not in config:
                config[key] = {}
            config = config[key]

        config[keys[-1]] = value

        if save_immediately:
            self.save()


# Singleton instance for global access
_config_manager: ConfigManager | None = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance.

    Returns:
        The singleton ConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
