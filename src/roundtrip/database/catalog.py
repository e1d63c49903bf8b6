"""SQLite-backed collection of managed items, groups and tags."""

from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..interfaces import CollectionManager
from ..models import Item
from ..utils.logging import get_logger
from .schema import ItemOrigin, ItemRecord, ItemTag, TagRecord

logger = get_logger(__name__)


class Catalog(CollectionManager):
    """
    Collection manager over a SQLAlchemy session.

    Every write commits immediately; on a database error the session is
    rolled back and the error propagates.
    """

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _to_item(record: ItemRecord) -> Item:
        return Item(id=record.id, path=Path(record.path), group_leader_id=record.group_leader_id)

    def _record(self, item_id: int) -> ItemRecord:
        record = self.session.get(ItemRecord, item_id)
        if record is None:
            raise LookupError(f"No catalog item with id {item_id}")
        return record

    def _commit(self, what: str):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to {what}: {e}")
            self.session.rollback()
            raise

    def import_file(self, path: Path, origin: ItemOrigin = ItemOrigin.IMPORT) -> Item:
        """
        Register a file, returning the existing item if the path is already managed.

        New items lead their own group.
        """
        path = Path(path).resolve()
        existing = self.find_by_path(path)
        if existing is not None:
            logger.debug(f"Already in catalog: {path}")
            return existing

        if not path.is_file():
            raise FileNotFoundError(f"Cannot import missing file: {path}")

        record = ItemRecord(
            path=str(path),
            filename=path.name,
            extension=path.suffix.lower(),
            origin=origin.value,
        )
        self.session.add(record)
        try:
            self.session.flush()
            record.group_leader_id = record.id
        except SQLAlchemyError:
            self.session.rollback()
            raise
        self._commit(f"import {path}")

        logger.info(f"Imported {path.name} as item {record.id}")
        return self._to_item(record)

    def set_origin(self, item: Item, origin: ItemOrigin):
        record = self._record(item.id)
        if record.origin == origin.value:
            return
        record.origin = origin.value
        self._commit(f"mark item {item.id} as {origin.value}")

    def find_by_path(self, path: Path) -> Item | None:
        record = (
            self.session.query(ItemRecord)
            .filter(ItemRecord.path == str(Path(path).resolve()))
            .first()
        )
        return self._to_item(record) if record is not None else None

    def get_item(self, item_id: int) -> Item:
        return self._to_item(self._record(item_id))

    def list_items(self) -> list[Item]:
        return [self._to_item(r) for r in self.session.query(ItemRecord).order_by(ItemRecord.id)]

    def count(self) -> int:
        return self.session.query(ItemRecord).count()

    def group_with(self, leader_id: int, member_id: int):
        leader = self._record(leader_id)
        member = self._record(member_id)
        if member.group_leader_id == leader.id:
            return
        member.group_leader_id = leader.id
        self._commit(f"group item {member_id} with {leader_id}")
        logger.debug(f"Grouped {member.filename} under {leader.filename}")

    def get_group_members(self, item: Item) -> list[Item]:
        leader_id = self._record(item.id).group_leader_id or item.id
        records = (
            self.session.query(ItemRecord)
            .filter(ItemRecord.group_leader_id == leader_id)
            .order_by(ItemRecord.id)
            .all()
        )
        return [self._to_item(r) for r in records]

    def get_tags(self, item: Item) -> set[str]:
        record = self._record(item.id)
        return {link.tag.name for link in record.tags}

    def attach_tag(self, tag: str, item: Item):
        tag = tag.strip()
        if not tag:
            raise ValueError("Tag name must not be empty")

        record = self._record(item.id)
        tag_record = self.session.query(TagRecord).filter(TagRecord.name == tag).first()
        if tag_record is None:
            tag_record = TagRecord(name=tag)
            self.session.add(tag_record)
            self.session.flush()
        elif any(link.tag_id == tag_record.id for link in record.tags):
            return

        record.tags.append(ItemTag(tag=tag_record))
        self._commit(f"attach tag '{tag}'")
        logger.debug(f"Tagged {record.filename} with '{tag}'")
