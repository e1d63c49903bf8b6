"""
roundtrip - send catalog photos to an external editor and bring the edits back.

Edited files land next to their originals, are imported into the catalog,
grouped with the original and given its tags.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config import get_config
from .utils.logging import get_logger

from .core import RoundTripCoordinator, RoundTripResult
from .database import Catalog, get_database
from .exporter import FileExporter
from .filters import ImportFilter, should_ignore
from .launcher import ExternalProcessLauncher
from .models import Batch, BatchState, ExportedFile, Item, RunMode
from .paths import PathResolver
from .relocator import FileRelocator

__all__ = [
    "get_config",
    "get_logger",
    "get_database",
    # Domain types
    "Item",
    "ExportedFile",
    "Batch",
    "RunMode",
    "BatchState",
    # Components
    "PathResolver",
    "FileRelocator",
    "ExternalProcessLauncher",
    "RoundTripCoordinator",
    "RoundTripResult",
    "ImportFilter",
    "should_ignore",
    "FileExporter",
    "Catalog",
]
