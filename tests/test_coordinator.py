"""Tests for the round-trip coordinator."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from roundtrip.config import EditorSettings
from roundtrip.core import RESERVED_TAG_PREFIX, RoundTripCoordinator, is_reserved_tag
from roundtrip.errors import (
    CatalogFailure,
    ExportFailure,
    LaunchError,
    PathResolutionExhausted,
    ToolNotFound,
)
from roundtrip.interfaces import CollectionManager, Exporter
from roundtrip.launcher import ExternalProcessLauncher, LaunchHandle
from roundtrip.models import BatchState, ExportedFile, Item, RunMode
from roundtrip.relocator import FileRelocator, RelocationResult


class MemoryCollection(CollectionManager):
    """In-memory collection manager."""

    def __init__(self):
        self.items: dict[int, Item] = {}
        self.leaders: dict[int, int] = {}
        self.tags: dict[int, set[str]] = {}
        self.group_calls: list[tuple[int, int]] = []
        self.tag_calls: list[tuple[str, int]] = []

    def add(self, path: Path, tags=()) -> Item:
        item = self.import_file(path)
        self.tags[item.id] = set(tags)
        return item

    def import_file(self, path: Path) -> Item:
        for item in self.items.values():
            if item.path == path:
                return item
        item_id = len(self.items) + 1
        item = Item(id=item_id, path=path, group_leader_id=item_id)
        self.items[item_id] = item
        self.leaders[item_id] = item_id
        self.tags[item_id] = set()
        return item

    def group_with(self, leader_id: int, member_id: int):
        self.group_calls.append((leader_id, member_id))
        self.leaders[member_id] = leader_id

    def get_group_members(self, item: Item) -> list[Item]:
        leader = self.leaders[item.id]
        return [self.items[i] for i, lead in self.leaders.items() if lead == leader]

    def get_tags(self, item: Item) -> set[str]:
        return set(self.tags[item.id])

    def attach_tag(self, tag: str, item: Item):
        self.tag_calls.append((tag, item.id))
        self.tags[item.id].add(tag)


class CopyExporter(Exporter):
    """Writes a small file per item into an export folder."""

    def __init__(self, export_dir: Path, fail_for: set[str] = frozenset()):
        self.export_dir = export_dir
        self.fail_for = fail_for
        self.calls: list[tuple[Item, str, int]] = []

    def export(self, item: Item, format: str, bit_depth: int) -> ExportedFile:
        self.calls.append((item, format, bit_depth))
        if item.filename in self.fail_for:
            raise ExportFailure(item, "simulated")
        path = self.export_dir / (item.path.stem + ".tif")
        path.write_bytes(b"edited " + item.filename.encode())
        return ExportedFile(path=path, format=format, bit_depth=bit_depth)


@pytest.fixture
def photos(tmp_path):
    folder = tmp_path / "photos"
    folder.mkdir()
    return folder


@pytest.fixture
def export_dir(tmp_path):
    folder = tmp_path / "export"
    folder.mkdir()
    return folder


@pytest.fixture
def collection():
    return MemoryCollection()


@pytest.fixture
def launcher():
    fake = MagicMock(spec=ExternalProcessLauncher)
    fake.locate.return_value = "/usr/bin/gimp"
    fake.launch.side_effect = lambda tool, files, mode: LaunchHandle(
        command=[tool, *map(str, files)],
        mode=mode,
        exit_status=0 if mode == RunMode.ATTACHED else None,
    )
    return fake


def make_items(collection, photos, names, tags=()):
    items = []
    for name in names:
        path = photos / name
        path.write_bytes(b"raw")
        items.append(collection.add(path, tags))
    return items


def make_coordinator(collection, exporter, launcher, detached=False, **kwargs):
    settings = EditorSettings(tool_path="gimp", run_detached=detached, export_format="tiff")
    return RoundTripCoordinator(
        settings=settings,
        exporter=exporter,
        collection=collection,
        launcher=launcher,
        **kwargs,
    )


class TestReservedTags:
    def test_prefix(self):
        assert is_reserved_tag(f"{RESERVED_TAG_PREFIX}|format|nef")
        assert is_reserved_tag("darktable|changed")
        assert not is_reserved_tag("places|berlin")
        assert not is_reserved_tag("my darktable edits")


class TestAttachedRun:
    """Attached runs reconcile every exported item."""

    def test_every_item_reimported(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef", "b.nef", "c.nef"])
        coordinator = make_coordinator(collection, CopyExporter(export_dir), launcher)

        result = coordinator.run(items)

        assert len(result.new_items) == len(items)
        assert result.state == BatchState.DONE
        for item, outcome in zip(items, result.outcomes):
            assert outcome.success
            assert outcome.destination == photos / (item.path.stem + ".tif")
            assert outcome.destination.exists()
        assert list(export_dir.iterdir()) == []

    def test_state_sequence(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef"])
        result = make_coordinator(collection, CopyExporter(export_dir), launcher).run(items)

        assert result.states == [
            BatchState.BUILDING,
            BatchState.EXPORTING,
            BatchState.LAUNCHED,
            BatchState.RECONCILING,
            BatchState.DONE,
        ]
        assert result.reconciled

    def test_launch_receives_all_exports_in_order(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["b.nef", "a.nef"])
        make_coordinator(collection, CopyExporter(export_dir), launcher).run(items)

        tool, files, mode = launcher.launch.call_args.args
        assert tool == "gimp"
        assert files == [export_dir / "b.tif", export_dir / "a.tif"]
        assert mode == RunMode.ATTACHED

    def test_exporter_gets_format_and_depth(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef"])
        exporter = CopyExporter(export_dir)
        make_coordinator(collection, exporter, launcher).run(items)

        assert exporter.calls == [(items[0], "tiff", 8)]

    def test_new_item_grouped_with_original_leader(self, collection, photos, export_dir, launcher):
        leader, member = make_items(collection, photos, ["lead.nef", "member.nef"])
        collection.group_with(leader.id, member.id)
        member = Item(id=member.id, path=member.path, group_leader_id=leader.id)
        collection.group_calls.clear()

        result = make_coordinator(collection, CopyExporter(export_dir), launcher).run([member])

        new_item = result.new_items[0]
        assert collection.group_calls == [(leader.id, new_item.id)]
        assert result.outcomes[0].grouped

    def test_grouping_is_idempotent(self, collection, photos, export_dir, launcher):
        """An edited file already in the group is not grouped again."""
        (original,) = make_items(collection, photos, ["a.nef"])
        existing = collection.import_file(photos / "a.tif")
        collection.group_with(original.id, existing.id)
        collection.group_calls.clear()

        # Force the destination onto the already-grouped file
        resolver = MagicMock()
        resolver.resolve.return_value = MagicMock(path=photos / "a.tif", exhausted=False)
        coordinator = make_coordinator(
            collection, CopyExporter(export_dir), launcher, resolver=resolver
        )

        result = coordinator.run([original])

        assert result.outcomes[0].new_item.id == existing.id
        assert collection.group_calls == []
        assert not result.outcomes[0].grouped

    def test_tags_copied_except_reserved(self, collection, photos, export_dir, launcher):
        tags = {"places|berlin", "people|anna", "darktable|format|nef", "darktable|changed"}
        items = make_items(collection, photos, ["a.nef"], tags=tags)

        result = make_coordinator(collection, CopyExporter(export_dir), launcher).run(items)

        new_item = result.new_items[0]
        assert collection.get_tags(new_item) == {"places|berlin", "people|anna"}
        assert result.outcomes[0].copied_tags == ["people|anna", "places|berlin"]
        assert collection.get_tags(items[0]) == tags

    def test_collision_gets_suffix(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef"])
        (photos / "a.tif").write_bytes(b"previous edit")

        result = make_coordinator(collection, CopyExporter(export_dir), launcher).run(items)

        assert result.outcomes[0].destination == photos / "a_01.tif"
        assert (photos / "a.tif").read_bytes() == b"previous edit"

    def test_exhausted_suffixes_reuse_last_path(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef"])
        (photos / "a.tif").write_bytes(b"x")
        for number in range(1, 100):
            (photos / f"a_{number:02d}.tif").write_bytes(b"x")

        result = make_coordinator(collection, CopyExporter(export_dir), launcher).run(items)

        outcome = result.outcomes[0]
        assert outcome.success
        assert isinstance(outcome.warning, PathResolutionExhausted)
        assert outcome.destination == photos / "a_99.tif"
        assert outcome.destination.read_bytes() == b"edited a.nef"

    def test_single_relocation_failure(self, collection, photos, export_dir, launcher):
        """One failed move leaves N-1 new items and the batch completes."""
        items = make_items(collection, photos, ["a.nef", "b.nef", "c.nef"])
        real = FileRelocator()

        def relocate(source, destination):
            if source.name == "b.tif":
                return RelocationResult(
                    source_path=source,
                    destination_path=destination,
                    success=False,
                    error_message="Copy failed: disk full",
                )
            return real.relocate(source, destination)

        relocator = MagicMock(spec=FileRelocator)
        relocator.relocate.side_effect = relocate
        coordinator = make_coordinator(
            collection, CopyExporter(export_dir), launcher, relocator=relocator
        )

        result = coordinator.run(items)

        assert result.state == BatchState.DONE
        assert len(result.new_items) == 2
        assert len(result.failed) == 1
        failure = result.failed[0]
        assert failure.item == items[1]
        assert failure.error.item == items[1]
        assert "disk full" in failure.error.reason
        assert (export_dir / "b.tif").exists()

    def test_progress_reported_per_item_per_phase(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef", "b.nef"])
        progress = MagicMock()
        coordinator = make_coordinator(
            collection, CopyExporter(export_dir), launcher, progress=progress
        )

        coordinator.run(items)

        assert [c.args for c in progress.call_args_list] == [
            (1, 2, "a.nef"),
            (2, 2, "b.nef"),
            (1, 2, "a.nef"),
            (2, 2, "b.nef"),
        ]

    def test_nonzero_exit_still_reconciles(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef"])
        launcher.launch.side_effect = lambda tool, files, mode: LaunchHandle(
            command=[tool], mode=mode, exit_status=1
        )

        result = make_coordinator(collection, CopyExporter(export_dir), launcher).run(items)

        assert result.launch.exit_status == 1
        assert len(result.new_items) == 1


class TestDetachedRun:
    """Detached runs never touch the collection after launch."""

    def test_no_reconciliation(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef", "b.nef"], tags={"people|anna"})
        relocator = MagicMock(spec=FileRelocator)
        coordinator = make_coordinator(
            collection, CopyExporter(export_dir), launcher, detached=True, relocator=relocator
        )
        item_count = len(collection.items)
        collection.tag_calls.clear()

        result = coordinator.run(items)

        assert result.state == BatchState.DETACHED_DONE
        assert result.states[-2:] == [BatchState.LAUNCHED, BatchState.DETACHED_DONE]
        assert not result.reconciled
        assert result.outcomes == []
        relocator.relocate.assert_not_called()
        assert len(collection.items) == item_count
        assert collection.group_calls == []
        assert collection.tag_calls == []
        assert result.launch.exit_status is None
        # exports stay for the running editor
        assert sorted(p.name for p in export_dir.iterdir()) == ["a.tif", "b.tif"]

    def test_mode_override(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef"])
        coordinator = make_coordinator(collection, CopyExporter(export_dir), launcher)

        result = coordinator.run(items, mode=RunMode.DETACHED)

        assert result.mode == RunMode.DETACHED
        assert launcher.launch.call_args.args[2] == RunMode.DETACHED


class TestFailures:
    """Fatal and per-item failures."""

    def test_tool_not_found_aborts_before_export(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef"])
        launcher.locate.side_effect = ToolNotFound("gimp")
        exporter = CopyExporter(export_dir)

        with pytest.raises(ToolNotFound):
            make_coordinator(collection, exporter, launcher).run(items)

        assert exporter.calls == []
        launcher.launch.assert_not_called()

    def test_launch_error_discards_exports(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef", "b.nef"])
        launcher.launch.side_effect = LaunchError("cannot fork")
        item_count = len(collection.items)

        with pytest.raises(LaunchError):
            make_coordinator(collection, CopyExporter(export_dir), launcher).run(items)

        assert list(export_dir.iterdir()) == []
        assert len(collection.items) == item_count

    def test_export_failure_skips_item(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef", "b.nef", "c.nef"])
        exporter = CopyExporter(export_dir, fail_for={"b.nef"})

        result = make_coordinator(collection, exporter, launcher).run(items)

        assert len(result.export_failures) == 1
        assert result.export_failures[0].item == items[1]
        assert [o.item for o in result.outcomes] == [items[0], items[2]]
        files = launcher.launch.call_args.args[1]
        assert files == [export_dir / "a.tif", export_dir / "c.tif"]

    def test_nothing_exported_still_launches(self, collection, photos, export_dir, launcher):
        """The editor opens empty; the batch still passes through LAUNCHED."""
        items = make_items(collection, photos, ["a.nef"])
        exporter = CopyExporter(export_dir, fail_for={"a.nef"})

        result = make_coordinator(collection, exporter, launcher).run(items)

        assert launcher.launch.call_args.args[1] == []
        assert result.states == [
            BatchState.BUILDING,
            BatchState.EXPORTING,
            BatchState.LAUNCHED,
            BatchState.RECONCILING,
            BatchState.DONE,
        ]
        assert result.outcomes == []
        assert len(result.export_failures) == 1

    def test_repeated_item_edited_once(self, collection, photos, export_dir, launcher):
        (item,) = make_items(collection, photos, ["a.nef"])
        exporter = CopyExporter(export_dir)

        result = make_coordinator(collection, exporter, launcher).run([item, item])

        assert exporter.calls == [(item, "tiff", 8)]
        assert launcher.launch.call_args.args[1] == [export_dir / "a.tif"]
        assert len(result.new_items) == 1
        assert result.state == BatchState.DONE
        assert list(export_dir.iterdir()) == []

    def test_catalog_failure_does_not_stop_batch(self, collection, photos, export_dir, launcher):
        """A catalog error on one file leaves it in place and the rest are reimported."""
        items = make_items(collection, photos, ["a.nef", "b.nef", "c.nef"])
        real_import = collection.import_file

        def import_file(path):
            if path.name == "a.tif":
                raise OSError("database is locked")
            return real_import(path)

        collection.import_file = import_file

        result = make_coordinator(collection, CopyExporter(export_dir), launcher).run(items)

        assert result.state == BatchState.DONE
        assert [o.item for o in result.succeeded] == [items[1], items[2]]
        failure = result.failed[0]
        assert isinstance(failure.error, CatalogFailure)
        assert "database is locked" in failure.error.reason
        assert failure.destination == photos / "a.tif"
        assert failure.destination.exists()
        assert list(export_dir.iterdir()) == []

    def test_tag_failure_reported_on_item(self, collection, photos, export_dir, launcher):
        items = make_items(collection, photos, ["a.nef"], tags={"people|anna"})
        collection.attach_tag = MagicMock(side_effect=LookupError("no such item"))

        result = make_coordinator(collection, CopyExporter(export_dir), launcher).run(items)

        outcome = result.outcomes[0]
        assert not outcome.success
        assert isinstance(outcome.error, CatalogFailure)
        assert outcome.new_item is not None
