"""Imports files into the collection through the pre-import listeners."""

import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..interfaces import CollectionManager, EventListener
from ..models import Item
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ImportReport:
    """Outcome of one import call."""

    imported: list[Item] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)

    # candidate -> error message
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ignored_count(self) -> int:
        return len(self.ignored)


class CatalogImporter:
    """
    Imports candidate files, letting listeners veto them first.

    Calls are serialized so watcher threads can share one importer.
    """

    def __init__(self, collection: CollectionManager, listeners: Sequence[EventListener] = ()):
        self.collection = collection
        self.listeners = list(listeners)
        self._lock = threading.Lock()

    def import_paths(self, paths: Iterable[Path]) -> ImportReport:
        candidates = [str(p) for p in paths]
        report = ImportReport()

        with self._lock:
            kept = candidates
            for listener in self.listeners:
                kept = listener.on_pre_import(kept)
            kept_set = set(kept)
            report.ignored = [c for c in candidates if c not in kept_set]

            for candidate in kept:
                try:
                    report.imported.append(self.collection.import_file(Path(candidate)))
                except (OSError, LookupError, ValueError) as e:
                    logger.error(f"Could not import {candidate}: {e}")
                    report.failed[candidate] = str(e)

        if report.ignored:
            logger.info(f"Ignored {report.ignored_count} image(s) matching ignore patterns")
        return report
