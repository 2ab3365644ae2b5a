"""Configuration management with lazy validation."""

from pathlib import Path
from functools import cached_property
from typing import Optional

from blocknote.models.config import CacheConfig, Config, RemoteConfig, SyncConfig
from blocknote.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "blocknote" / "config.yaml"


class ConfigManager:
    """
    Configuration manager with lazy section access.

    Example:
        >>> config_mgr = ConfigManager.load_default()
        >>> config_mgr.remote is None  # Local-only mode
        True
        >>> config_mgr.sync.debounce_ms
        500
    """

    def __init__(self, config: Config):
        """
        Initialize config manager with loaded config.

        Args:
            config: Loaded and validated Config instance
        """
        self._config = config

    @classmethod
    def load_default(cls) -> "ConfigManager":
        """Load configuration from ~/.config/blocknote/config.yaml."""
        return cls.load_from_path(DEFAULT_CONFIG_PATH)

    @classmethod
    def load_from_path(cls, path: Path) -> "ConfigManager":
        """
        Load configuration from specific path.

        Args:
            path: Path to config.yaml file

        Returns:
            ConfigManager instance with loaded config

        Raises:
            PermissionError: If config file has wrong permissions
            ValueError: If config is invalid
        """
        logger.info("config_loading", path=str(path))

        try:
            config = Config.load(path)
            logger.info("config_loaded", path=str(path), remote=config.remote is not None)
            return cls(config)

        except PermissionError as e:
            logger.error("config_permission_error", path=str(path), error=str(e))
            raise

        except Exception as e:
            logger.error("config_validation_error", path=str(path), error=str(e))
            raise ValueError(f"Configuration validation failed: {e}") from e

    @property
    def config(self) -> Config:
        return self._config

    @cached_property
    def remote(self) -> Optional[RemoteConfig]:
        """Remote store configuration, or None in local-only mode."""
        return self._config.remote

    @cached_property
    def cache(self) -> CacheConfig:
        return self._config.cache

    @cached_property
    def sync(self) -> SyncConfig:
        return self._config.sync

    @cached_property
    def cache_directory(self) -> Path:
        """Local cache directory as a Path."""
        return Path(self._config.cache.directory)
