"""File relocation across storage locations."""

from .relocator import FileRelocator, RelocationResult

__all__ = [
    "FileRelocator",
    "RelocationResult",
]
