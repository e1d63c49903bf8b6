"""Utility modules for roundtrip."""

from .logging import get_console, get_logger, setup_logging, setup_logging_from_settings

__all__ = [
    "get_logger",
    "setup_logging",
    "setup_logging_from_settings",
    "get_console",
]
