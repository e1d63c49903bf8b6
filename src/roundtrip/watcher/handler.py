"""Debounced file system event handler for inbox folders."""

import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from watchdog.events import FileSystemEventHandler

from ..config.models import DEFAULT_IMAGE_EXTENSIONS
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Partial downloads, editor scratch files and the like
IGNORED_EXTENSIONS = {
    ".tmp",
    ".temp",
    ".part",
    ".partial",
    ".crdownload",
    ".download",
    ".swp",
    ".bak",
    ".lock",
    ".xcf",  # editor working files; the catalog can't display them
}

IGNORED_NAMES = {
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
}

SUPPORTED_EXTENSIONS = set(DEFAULT_IMAGE_EXTENSIONS)


class DebouncedFileHandler(FileSystemEventHandler):
    """
    Calls back once a new image has stopped changing size.

    Each pending file has its own timer; a modification resets it. The
    callback runs on the timer thread.
    """

    def __init__(
        self,
        callback: Callable[[Path], None],
        debounce_seconds: float = 2.0,
        supported_extensions: Iterable[str] | None = None,
    ):
        """
        Args:
            callback: Called with the path once the file is stable
            debounce_seconds: Quiet period before the callback fires
            supported_extensions: Extensions to react to (lowercase, with dot)
        """
        super().__init__()
        self.callback = callback
        self.debounce_seconds = debounce_seconds
        self.supported_extensions = (
            set(supported_extensions) if supported_extensions is not None else SUPPORTED_EXTENSIONS
        )

        # path -> (timer, size when scheduled)
        self._pending: dict[str, tuple[threading.Timer, int]] = {}
        self._lock = threading.Lock()

    def _should_ignore(self, path: Path) -> bool:
        name = path.name
        return (
            name.startswith(".")
            or name.endswith("~")
            or name in IGNORED_NAMES
            or path.suffix.lower() in IGNORED_EXTENSIONS
        )

    def _is_supported(self, path: Path) -> bool:
        return path.suffix.lower() in self.supported_extensions

    @staticmethod
    def _size(path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError:
            return -1

    def _schedule(self, path_str: str):
        with self._lock:
            if path_str in self._pending:
                self._pending[path_str][0].cancel()

            timer = threading.Timer(self.debounce_seconds, self._fire, args=(path_str,))
            timer.daemon = True
            self._pending[path_str] = (timer, self._size(Path(path_str)))
            timer.start()

    def _fire(self, path_str: str):
        path = Path(path_str)
        with self._lock:
            entry = self._pending.pop(path_str, None)
        if entry is None:
            return

        size = self._size(path)
        if size == -1:
            logger.debug(f"File vanished before import: {path}")
            return
        if size != entry[1]:
            logger.debug(f"Still being written: {path} ({entry[1]} -> {size})")
            self._schedule(path_str)
            return

        logger.info(f"File ready for import: {path}")
        try:
            self.callback(path)
        except Exception as e:
            logger.error(f"Error importing {path}: {e}")

    def _accepts(self, event) -> bool:
        if event.is_directory:
            return False
        path = Path(event.src_path)
        if self._should_ignore(path):
            logger.debug(f"Ignoring file (system/temp): {path}")
            return False
        if not self._is_supported(path):
            logger.debug(f"Ignoring file (unsupported extension): {path}")
            return False
        return True

    def on_created(self, event):
        if self._accepts(event):
            self._schedule(event.src_path)

    def on_moved(self, event):
        # Editors often save to a temp name and rename over the target
        if event.is_directory:
            return
        path = Path(event.dest_path)
        if not self._should_ignore(path) and self._is_supported(path):
            self._schedule(event.dest_path)

    def on_modified(self, event):
        if not self._accepts(event):
            return
        with self._lock:
            pending = event.src_path in self._pending
        if pending:
            logger.debug(f"File modified (rescheduling): {event.src_path}")
            self._schedule(event.src_path)

    def stop(self):
        """Cancel all pending timers."""
        with self._lock:
            for timer, _ in self._pending.values():
                timer.cancel()
            self._pending.clear()
