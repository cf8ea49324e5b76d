"""DM Ads Dashboard - Configuration Module.

This module provides YAML-backed configuration management.
"""

from .config_manager import AppConfig, ConfigError, ConfigManager

__all__ = ["AppConfig", "ConfigManager", "ConfigError"]
