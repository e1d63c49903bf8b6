"""Destination path resolution."""

from .resolver import MAX_SUFFIX, PathResolver, ResolvedPath

__all__ = [
    "MAX_SUFFIX",
    "PathResolver",
    "ResolvedPath",
]
