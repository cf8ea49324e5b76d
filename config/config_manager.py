"""Configuration management for the DM ads dashboard.

Configuration is stored as YAML in ~/.dmads/config.yaml. A missing file
means defaults; an unreadable or invalid file is an error.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from storage.identity import NamespaceStrategy

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    pass


class StorageConfig(BaseModel):
    """Key-value storage configuration."""

    path: str = Field(default="~/.dmads/dmads.db")
    key_prefix: str = "dmads_"
    namespace_strategy: NamespaceStrategy = NamespaceStrategy.BY_USER_ID


class ImportConfig(BaseModel):
    """CSV import policy."""

    # Empty Campaign Delivery counts as active spend
    blank_delivery_is_active: bool = True
    preserve_manual: bool = True


class BackupConfig(BaseModel):
    """Automatic snapshot configuration."""

    retention_days: int = Field(default=30, ge=1)
    version: str = "1.0"
    auto_backup: bool = True


class AppConfig(BaseModel):
    """Application configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    imports: ImportConfig = Field(default_factory=ImportConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000


class ConfigManager:
    """Loads and saves the YAML configuration file.

    Attributes:
        config_dir: Path to the configuration directory.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".dmads"
    CONFIG_FILE = "config.yaml"

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """Initialize the configuration manager.

        Args:
            config_dir: Custom configuration directory path.
        """
        self.config_dir = Path(config_dir) if config_dir else self.DEFAULT_CONFIG_DIR
        self._config: Optional[AppConfig] = None

    @property
    def config_path(self) -> Path:
        """Path to the configuration file."""
        return self.config_dir / self.CONFIG_FILE

    def save(self, config: AppConfig) -> None:
        """Write configuration to disk.

        Raises:
            ConfigError: If save operation fails.
        """
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            data = config.model_dump(mode="json")
            self.config_path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
            self._config = config
            logger.info(f"Configuration saved to {self.config_path}")
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}") from e

    def load(self) -> AppConfig:
        """Load configuration, using defaults when no file exists.

        Raises:
            ConfigError: If the file can't be read or is invalid.
        """
        if not self.config_path.exists():
            logger.debug(f"No configuration at {self.config_path}, using defaults")
            self._config = AppConfig()
            return self._config

        try:
            data = yaml.safe_load(self.config_path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Invalid configuration format: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError("Invalid configuration format: expected a mapping")

        try:
            self._config = AppConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        return self._config

    def get_config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def update(self, **kwargs: Any) -> AppConfig:
        """Update top-level configuration values and save.

        Args:
            **kwargs: Configuration fields to update.

        Returns:
            The updated AppConfig.
        """
        config_dict = self.get_config().model_dump()

        for key, value in kwargs.items():
            if key in config_dict:
                config_dict[key] = value

        try:
            new_config = AppConfig(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        self.save(new_config)
        return new_config

    def is_configured(self) -> bool:
        """Check if a configuration file exists."""
        return self.config_path.exists()

    def reset(self) -> None:
        """Delete the configuration file."""
        if self.config_path.exists():
            self.config_path.unlink()
        self._config = None
        logger.info("Configuration reset complete")
