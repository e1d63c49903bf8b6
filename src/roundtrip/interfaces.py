"""Collaborator interfaces the round-trip core depends on."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from .models import ExportedFile, Item

# (current_index, total_count, item_label); indexes start at 1
ProgressSink = Callable[[int, int, str], None]


class Exporter(ABC):
    """Produces temporary copies of items for the editor."""

    @abstractmethod
    def export(self, item: Item, format: str, bit_depth: int) -> ExportedFile:
        """
        Write a temporary copy of ``item``.

        Raises:
            ExportFailure: The copy could not be produced
        """
        pass


class CollectionManager(ABC):
    """The store that owns items, their groups and their tags."""

    @abstractmethod
    def import_file(self, path: Path) -> Item:
        """Register ``path`` as a managed item (returns the existing item if already managed)."""
        pass

    @abstractmethod
    def group_with(self, leader_id: int, member_id: int):
        """Put ``member_id`` in the group led by ``leader_id``."""
        pass

    @abstractmethod
    def get_group_members(self, item: Item) -> list[Item]:
        """All items in ``item``'s group, the leader included."""
        pass

    @abstractmethod
    def get_tags(self, item: Item) -> set[str]:
        pass

    @abstractmethod
    def attach_tag(self, tag: str, item: Item):
        pass


class EventListener(ABC):
    """Receives catalog events."""

    def on_pre_import(self, candidates: list[str]) -> list[str]:
        """Called with the paths about to be imported; returns the ones to keep."""
        return list(candidates)
