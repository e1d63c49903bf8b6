"""Inbox folder watching."""

from .handler import SUPPORTED_EXTENSIONS, DebouncedFileHandler
from .watcher import ImportWatcher

__all__ = ["ImportWatcher", "DebouncedFileHandler", "SUPPORTED_EXTENSIONS"]
