"""SQLite schema for the photo catalog."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class ItemOrigin(str, Enum):
    """How an item entered the catalog."""

    IMPORT = "import"
    ROUNDTRIP = "roundtrip"


class ItemRecord(Base):
    """Catalog item table."""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    path = Column(Text, nullable=False, unique=True, index=True)
    filename = Column(String(255), nullable=False)
    extension = Column(String(50))

    # Items lead their own group until grouped with another item
    group_leader_id = Column(Integer, ForeignKey("items.id"), index=True)

    origin = Column(String(20), default=ItemOrigin.IMPORT.value, nullable=False)
    imported_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    tags = relationship("ItemTag", back_populates="item", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<ItemRecord(id={self.id}, filename='{self.filename}')>"


class TagRecord(Base):
    """Tag table."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    items = relationship("ItemTag", back_populates="tag", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<TagRecord(name='{self.name}')>"


class ItemTag(Base):
    """Many-to-many relationship between items and tags."""

    __tablename__ = "item_tags"

    item_id = Column(Integer, ForeignKey("items.id"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id"), primary_key=True)
    attached_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    item = relationship("ItemRecord", back_populates="tags")
    tag = relationship("TagRecord", back_populates="items")
