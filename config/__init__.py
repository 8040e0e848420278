"""Heat board configuration: YAML files layered into AppConfig dataclasses."""

from .config_manager import DEFAULT_CONFIG_DIR, ConfigManager
from .models import AppConfig, FeedConfig, RefreshConfig

__all__ = ["ConfigManager", "AppConfig", "FeedConfig", "RefreshConfig", "DEFAULT_CONFIG_DIR"]
