"""Catalog storage for roundtrip."""

from .catalog import Catalog
from .models import Database, get_database, get_session
from .schema import Base, ItemOrigin, ItemRecord, ItemTag, TagRecord

__all__ = [
    # Tables
    "Base",
    "ItemRecord",
    "TagRecord",
    "ItemTag",
    "ItemOrigin",
    # Database
    "Database",
    "get_database",
    "get_session",
    # Collection manager
    "Catalog",
]
