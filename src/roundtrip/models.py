"""Domain types shared by the round-trip components."""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class RunMode(str, Enum):
    """How the external editor is run."""

    ATTACHED = "attached"
    DETACHED = "detached"


class BatchState(str, Enum):
    """Lifecycle of one round-trip batch."""

    BUILDING = "building"
    EXPORTING = "exporting"
    LAUNCHED = "launched"
    DETACHED_DONE = "detached_done"
    RECONCILING = "reconciling"
    DONE = "done"


@dataclass(frozen=True)
class Item:
    """A managed asset in the collection."""

    id: int
    path: Path
    group_leader_id: int | None = None

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def leader_id(self) -> int:
        """Group leader, or the item itself when it leads its own group."""
        return self.group_leader_id if self.group_leader_id is not None else self.id


@dataclass
class ExportedFile:
    """Temporary copy of an item handed to the editor."""

    path: Path
    format: str
    bit_depth: int = 8


class Batch:
    """
    Ordered mapping of items to their exported files.

    Insertion order is the export order and is the order reconciliation
    walks the pairs in.
    """

    def __init__(self):
        self._entries: dict[Item, ExportedFile] = {}

    def add(self, item: Item, exported: ExportedFile):
        if item in self._entries:
            raise ValueError(f"Item {item.id} already has an exported file in this batch")
        self._entries[item] = exported

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[Item, ExportedFile]]:
        return iter(list(self._entries.items()))

    def __contains__(self, item: object) -> bool:
        return item in self._entries

    @property
    def items(self) -> list[Item]:
        return list(self._entries)

    @property
    def exported_paths(self) -> list[Path]:
        return [exported.path for exported in self._entries.values()]
