"""Round-trip orchestration."""

from .coordinator import (
    RESERVED_TAG_PREFIX,
    ItemOutcome,
    RoundTripCoordinator,
    RoundTripResult,
    is_reserved_tag,
)
from .importer import CatalogImporter, ImportReport

__all__ = [
    "CatalogImporter",
    "ImportReport",
    "RESERVED_TAG_PREFIX",
    "ItemOutcome",
    "RoundTripCoordinator",
    "RoundTripResult",
    "is_reserved_tag",
]
