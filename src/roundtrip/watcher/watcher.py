"""Watches inbox folders and imports new images into the catalog."""

import threading
from pathlib import Path

from watchdog.observers import Observer

from ..config.models import ImportSettings
from ..core.importer import CatalogImporter, ImportReport
from ..utils.logging import get_logger
from .handler import DebouncedFileHandler

logger = get_logger(__name__)


class ImportWatcher:
    """
    Imports images that appear in the configured inbox folders.

    Each stable new file is passed through the importer, so the pre-import
    listeners (ignore patterns) decide whether it reaches the catalog.
    """

    def __init__(self, settings: ImportSettings, importer: CatalogImporter):
        self.settings = settings
        self.importer = importer

        self._observer: Observer | None = None
        self._handlers: list[DebouncedFileHandler] = []
        self._running = False
        self._lock = threading.Lock()

        self.imported_count = 0
        self.ignored_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def watched_folders(self) -> list[Path]:
        return list(self.settings.inbox_folders)

    def _on_file_ready(self, path: Path):
        report = self.importer.import_paths([path])
        self._tally(report)

    def _tally(self, report: ImportReport):
        with self._lock:
            self.imported_count += len(report.imported)
            self.ignored_count += report.ignored_count

    def start(self):
        """Start watching all inbox folders."""
        with self._lock:
            if self._running:
                logger.warning("Watcher is already running")
                return
            if not self.settings.inbox_folders:
                raise ValueError("No inbox folders configured")

            self._observer = Observer()
            for folder in self.settings.inbox_folders:
                if not folder.exists():
                    logger.warning(f"Inbox folder does not exist, creating: {folder}")
                    folder.mkdir(parents=True, exist_ok=True)

                handler = DebouncedFileHandler(
                    callback=self._on_file_ready,
                    debounce_seconds=self.settings.debounce_seconds,
                    supported_extensions=self.settings.supported_extensions,
                )
                self._handlers.append(handler)
                self._observer.schedule(handler, str(folder), recursive=False)
                logger.info(f"Watching folder: {folder}")

            self._observer.start()
            self._running = True

    def stop(self):
        """Stop watching; pending imports are dropped."""
        with self._lock:
            if not self._running:
                return

            for handler in self._handlers:
                handler.stop()
            self._handlers.clear()

            if self._observer:
                self._observer.stop()
                self._observer.join(timeout=5.0)
                self._observer = None

            self._running = False
            logger.info(
                f"Watcher stopped: {self.imported_count} imported, {self.ignored_count} ignored"
            )

    def import_existing(self) -> ImportReport:
        """Import supported files already sitting in the inbox folders."""
        existing: list[Path] = []
        extensions = set(self.settings.supported_extensions)
        for folder in self.settings.inbox_folders:
            if not folder.exists():
                continue
            for path in sorted(folder.iterdir()):
                if path.is_file() and not path.name.startswith(".") and path.suffix.lower() in extensions:
                    existing.append(path)

        report = self.importer.import_paths(existing)
        self._tally(report)
        return report

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
