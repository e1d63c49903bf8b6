"""Exceptions raised by the round-trip components."""

from pathlib import Path

from .models import Item


class RoundTripError(Exception):
    """Base class for round-trip errors."""

    pass


class ToolNotFound(RoundTripError):
    """The configured editor could not be located."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"Editor not found: {tool}")


class LaunchError(RoundTripError):
    """The editor process could not be started."""

    pass


class ItemError(RoundTripError):
    """An error tied to one item of a batch; the batch carries on."""

    def __init__(self, item: Item | None, reason: str):
        self.item = item
        self.reason = reason
        label = item.filename if item is not None else "<unknown>"
        super().__init__(f"{label}: {reason}")


class ExportFailure(ItemError):
    """The exporter could not produce a temporary copy of an item."""

    pass


class RelocationFailure(ItemError):
    """An edited file could not be moved back beside its original."""

    pass


class CatalogFailure(ItemError):
    """A relocated file could not be imported, grouped or tagged."""

    pass


class PathResolutionExhausted(ItemError):
    """Every collision suffix was taken; the last candidate is used anyway."""

    def __init__(self, item: Item | None, path: Path):
        self.path = path
        super().__init__(item, f"no free name left, reusing {path.name}")
