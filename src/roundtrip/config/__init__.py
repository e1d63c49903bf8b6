"""Configuration module for roundtrip."""

from .manager import ConfigManager, get_config, get_config_manager
from .models import (
    OPTION_KEYS,
    DatabaseSettings,
    EditorSettings,
    ImportSettings,
    LoggingSettings,
    RoundTripConfig,
)

__all__ = [
    "RoundTripConfig",
    "EditorSettings",
    "ImportSettings",
    "LoggingSettings",
    "DatabaseSettings",
    "OPTION_KEYS",
    "ConfigManager",
    "get_config",
    "get_config_manager",
]
