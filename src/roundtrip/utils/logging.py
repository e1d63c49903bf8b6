"""Logging setup: Rich console output plus a rotating log file."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROUNDTRIP_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "red bold",
        "success": "green bold",
        "path": "magenta",
    }
)

LOG_FILE_NAME = "roundtrip.log"
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


class RoundTripLogger:
    """Owns the ``roundtrip`` logger tree and the shared Rich console."""

    _instance: Optional["RoundTripLogger"] = None
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self.console = Console(theme=ROUNDTRIP_THEME)
            self.logger = logging.getLogger("roundtrip")
            self.log_file: Path | None = None
            self._initialized = True

    def setup(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
        console_enabled: bool = True,
        file_enabled: bool = True,
    ):
        """
        (Re)configure handlers.

        Args:
            level: Logging level name
            log_dir: Directory for the rotating log file
            max_bytes: Size at which the log file rotates
            backup_count: Rotated files to keep
            console_enabled: Attach the Rich console handler
            file_enabled: Attach the rotating file handler
        """
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        log_level = getattr(logging, level.upper(), logging.INFO)
        self.logger.setLevel(log_level)
        self.logger.propagate = False

        if console_enabled:
            console_handler = RichHandler(
                console=self.console,
                rich_tracebacks=True,
                show_time=False,
                show_path=False,
                markup=False,
            )
            console_handler.setLevel(log_level)
            self.logger.addHandler(console_handler)

        if file_enabled:
            log_dir = Path(log_dir) if log_dir is not None else Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = log_dir / LOG_FILE_NAME

            file_handler = RotatingFileHandler(
                self.log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
            file_handler.setFormatter(
                logging.Formatter(fmt=FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
            )
            file_handler.setLevel(log_level)
            self.logger.addHandler(file_handler)
        else:
            self.log_file = None

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        if not name:
            return self.logger
        # Module names arrive as "roundtrip.x.y"; keep them under one tree.
        if name == "roundtrip" or name.startswith("roundtrip."):
            return logging.getLogger(name)
        return self.logger.getChild(name)


_logger_instance: Optional[RoundTripLogger] = None


def _instance() -> RoundTripLogger:
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = RoundTripLogger()
    return _logger_instance


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the ``roundtrip`` tree.

    Logging is configured lazily with console-only defaults the first time
    it is requested; ``setup_logging`` replaces that configuration.
    """
    instance = _instance()
    if not instance.logger.handlers:
        instance.setup(file_enabled=False)
    return instance.get_logger(name)


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    console_enabled: bool = True,
    file_enabled: bool = True,
):
    """Configure global logging (see ``RoundTripLogger.setup``)."""
    _instance().setup(level, log_dir, max_bytes, backup_count, console_enabled, file_enabled)


def setup_logging_from_settings(settings) -> None:
    """Configure logging from a ``LoggingSettings`` model."""
    setup_logging(
        level=settings.level,
        log_dir=settings.log_dir,
        max_bytes=settings.max_bytes,
        backup_count=settings.backup_count,
        console_enabled=settings.console_enabled,
        file_enabled=settings.file_enabled,
    )


def get_console() -> Console:
    """Shared Rich console, themed for status output."""
    return _instance().console
