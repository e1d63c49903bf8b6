"""Drives one export -> edit -> reimport cycle for a batch of items."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..config.models import EditorSettings
from ..errors import (
    CatalogFailure,
    ExportFailure,
    ItemError,
    LaunchError,
    PathResolutionExhausted,
    RelocationFailure,
)
from ..interfaces import CollectionManager, Exporter, ProgressSink
from ..launcher import ExternalProcessLauncher, LaunchHandle
from ..models import Batch, BatchState, ExportedFile, Item, RunMode
from ..paths import PathResolver
from ..relocator import FileRelocator
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Tags under this namespace are bookkeeping and never copied to edited files
RESERVED_TAG_PREFIX = "darktable"


def is_reserved_tag(tag: str) -> bool:
    return tag.startswith(RESERVED_TAG_PREFIX)


@dataclass
class ItemOutcome:
    """What happened to one item during reconciliation."""

    item: Item
    exported: ExportedFile
    destination: Path | None = None
    new_item: Item | None = None
    copied_tags: list[str] = field(default_factory=list)
    grouped: bool = False

    success: bool = False
    error: ItemError | None = None

    # Set when every collision suffix was taken and the destination may overwrite
    warning: PathResolutionExhausted | None = None


@dataclass
class RoundTripResult:
    """Result of a whole batch."""

    mode: RunMode
    state: BatchState = BatchState.BUILDING
    states: list[BatchState] = field(default_factory=lambda: [BatchState.BUILDING])
    launch: LaunchHandle | None = None
    outcomes: list[ItemOutcome] = field(default_factory=list)
    export_failures: list[ExportFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def new_items(self) -> list[Item]:
        return [o.new_item for o in self.outcomes if o.new_item is not None]

    @property
    def reconciled(self) -> bool:
        return BatchState.RECONCILING in self.states


class RoundTripCoordinator:
    """
    Orchestrates the edit cycle.

    Pipeline: locate editor -> export items -> launch editor -> (attached only)
    move each edited file beside its original -> import -> group -> copy tags.

    A failure on one item never stops the others. A missing editor or a
    failed launch stops the whole batch before anything reaches the catalog.
    """

    def __init__(
        self,
        settings: EditorSettings,
        exporter: Exporter,
        collection: CollectionManager,
        launcher: ExternalProcessLauncher | None = None,
        resolver: PathResolver | None = None,
        relocator: FileRelocator | None = None,
        progress: ProgressSink | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            settings: Editor settings (tool, run mode, export format and depth)
            exporter: Produces the temporary copies
            collection: Catalog the edited files are imported into
            launcher: Starts the editor
            resolver: Picks destination names beside the originals
            relocator: Moves edited files out of the export directory
            progress: Called with (index, total, label) per item per phase
        """
        self.settings = settings
        self.exporter = exporter
        self.collection = collection
        self.launcher = launcher or ExternalProcessLauncher()
        self.resolver = resolver or PathResolver()
        self.relocator = relocator or FileRelocator()
        self.progress = progress

    def _transition(self, result: RoundTripResult, state: BatchState):
        logger.debug(f"Batch state: {result.state.value} -> {state.value}")
        result.state = state
        result.states.append(state)

    def _report(self, index: int, total: int, label: str):
        if self.progress is not None:
            self.progress(index, total, label)

    def export_batch(self, items: Sequence[Item], result: RoundTripResult) -> Batch:
        """Export every item; failures are recorded and skipped."""
        batch = Batch()
        items = self._unique(items)
        total = len(items)

        for index, item in enumerate(items, 1):
            try:
                exported = self.exporter.export(
                    item, self.settings.export_format, self.settings.bit_depth
                )
                batch.add(item, exported)
                logger.info(f"Exported {item.filename} -> {exported.path}")
            except ExportFailure as e:
                logger.error(f"Export failed for {item.filename}: {e.reason}")
                result.export_failures.append(e)
            except OSError as e:
                logger.error(f"Export failed for {item.filename}: {e}")
                result.export_failures.append(ExportFailure(item, str(e)))
            self._report(index, total, item.filename)

        return batch

    @staticmethod
    def _unique(items: Sequence[Item]) -> list[Item]:
        """Drop repeated items, keeping the first occurrence."""
        seen: set[int] = set()
        unique = []
        for item in items:
            if item.id in seen:
                logger.warning(f"{item.filename} (item {item.id}) listed more than once; editing it once")
                continue
            seen.add(item.id)
            unique.append(item)
        return unique

    def run(self, items: Sequence[Item], mode: RunMode | None = None) -> RoundTripResult:
        """
        Run the full cycle for ``items``.

        Args:
            items: Catalog items to edit, in order
            mode: Overrides the configured run mode

        Returns:
            RoundTripResult with per-item outcomes

        Raises:
            ToolNotFound: The editor cannot be located (nothing exported)
            LaunchError: The editor could not be started (exports discarded)
        """
        mode = mode or self.settings.run_mode
        result = RoundTripResult(mode=mode)

        # Fail before exporting anything if the editor is missing
        self.launcher.locate(self.settings.tool_path)

        self._transition(result, BatchState.EXPORTING)
        batch = self.export_batch(items, result)

        if len(batch) == 0:
            logger.warning("Nothing was exported; launching the editor without files")

        try:
            result.launch = self.launcher.launch(
                self.settings.tool_path, batch.exported_paths, mode
            )
        except LaunchError:
            self._discard_exports(batch)
            raise
        self._transition(result, BatchState.LAUNCHED)

        if mode == RunMode.DETACHED:
            logger.info(f"Editor running detached with {len(batch)} file(s); nothing will be reimported")
            self._transition(result, BatchState.DETACHED_DONE)
            return result

        if result.launch.exit_status:
            logger.warning(f"Editor exited with status {result.launch.exit_status}; reconciling anyway")

        self._transition(result, BatchState.RECONCILING)
        self.reconcile(batch, result)
        self._transition(result, BatchState.DONE)

        logger.info(
            f"Round-trip complete: {len(result.succeeded)} reimported, "
            f"{len(result.failed)} failed, {len(result.export_failures)} not exported"
        )
        return result

    def reconcile(self, batch: Batch, result: RoundTripResult):
        """Bring each edited file back, in batch order."""
        total = len(batch)
        for index, (item, exported) in enumerate(batch, 1):
            outcome = self.reconcile_item(item, exported)
            result.outcomes.append(outcome)
            self._report(index, total, item.filename)

    def reconcile_item(self, item: Item, exported: ExportedFile) -> ItemOutcome:
        outcome = ItemOutcome(item=item, exported=exported)

        resolved = self.resolver.resolve(item.path.parent, exported.path.name)
        outcome.destination = resolved.path
        if resolved.exhausted:
            outcome.warning = PathResolutionExhausted(item, resolved.path)
            logger.warning(f"{outcome.warning}")

        logger.info(f"Moving {exported.path} to {resolved.path}")
        relocation = self.relocator.relocate(exported.path, resolved.path)
        if not relocation.success:
            outcome.error = RelocationFailure(item, relocation.error_message or "move failed")
            logger.error(f"Could not bring back {exported.path.name}: {outcome.error.reason}")
            return outcome

        try:
            new_item = self.collection.import_file(resolved.path)
            outcome.new_item = new_item
            outcome.grouped = self._group_if_not_member(item, new_item)

            for tag in sorted(self.collection.get_tags(item)):
                if is_reserved_tag(tag):
                    continue
                self.collection.attach_tag(tag, new_item)
                outcome.copied_tags.append(tag)
        except Exception as e:
            # The edited file stays at the destination; only the catalog step failed
            outcome.error = CatalogFailure(item, f"{resolved.path.name} moved but not cataloged: {e}")
            logger.error(f"Catalog update failed for {resolved.path}: {e}")
            return outcome

        outcome.success = True
        return outcome

    def _group_if_not_member(self, original: Item, new_item: Item) -> bool:
        members = self.collection.get_group_members(original)
        if any(member.id == new_item.id for member in members):
            logger.debug(f"{new_item.filename} is already in the group of {original.filename}")
            return False
        self.collection.group_with(original.leader_id, new_item.id)
        logger.debug(f"Grouped {new_item.filename} with {original.filename}")
        return True

    @staticmethod
    def _discard_exports(batch: Batch):
        for path in batch.exported_paths:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove temporary export {path}: {e}")
