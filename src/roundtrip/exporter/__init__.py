"""Temporary exports handed to the editor."""

from .exporter import EXPORT_FORMATS, ORIGINAL_FORMAT, FileExporter

__all__ = [
    "EXPORT_FORMATS",
    "ORIGINAL_FORMAT",
    "FileExporter",
]
