"""Moves files between locations, including across filesystems."""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RelocationResult:
    """Result of a relocation."""

    source_path: Path
    destination_path: Path

    # Status
    success: bool
    error_message: str | None = None

    # False when the copy landed but the source could not be deleted afterwards
    source_removed: bool = True

    @property
    def destination_folder(self) -> Path:
        return self.destination_path.parent


class FileRelocator:
    """
    Moves a file to an exact destination path.

    A plain rename is tried first. When that fails (typically because source
    and destination live on different volumes) the file is copied to a staging
    name in the destination folder, renamed into place, and the source deleted.
    A failed copy leaves the source and any existing destination untouched. A
    failed delete after a good copy still counts as success.
    """

    def relocate(self, source: Path, destination: Path) -> RelocationResult:
        """
        Move ``source`` to ``destination``.

        Args:
            source: File to move
            destination: Full destination path (its directory must exist)

        Returns:
            RelocationResult with operation status
        """
        source = Path(source)
        destination = Path(destination)

        if not source.exists():
            return RelocationResult(
                source_path=source,
                destination_path=destination,
                success=False,
                error_message=f"Source file not found: {source}",
            )

        if not source.is_file():
            return RelocationResult(
                source_path=source,
                destination_path=destination,
                success=False,
                error_message=f"Source is not a file: {source}",
            )

        try:
            os.rename(source, destination)
            logger.info(f"Moved: {source.name} -> {destination}")
            return RelocationResult(
                source_path=source, destination_path=destination, success=True
            )
        except OSError as e:
            logger.debug(f"Rename of {source} failed ({e}), falling back to copy")

        return self._copy_then_delete(source, destination)

    def _copy_then_delete(self, source: Path, destination: Path) -> RelocationResult:
        # An existing destination is replaced whole or not at all
        staging = destination.with_name(f".{destination.name}.partial")

        try:
            shutil.copy2(source, staging)
            os.replace(staging, destination)
        except OSError as e:
            logger.error(f"Error copying {source} to {destination}: {e}")
            self._discard_partial(staging)
            return RelocationResult(
                source_path=source,
                destination_path=destination,
                success=False,
                error_message=f"Copy failed: {e}",
            )

        try:
            os.remove(source)
        except OSError as e:
            logger.warning(f"Copied {source.name} to {destination} but could not remove source: {e}")
            return RelocationResult(
                source_path=source,
                destination_path=destination,
                success=True,
                source_removed=False,
                error_message=f"Source not removed: {e}",
            )

        logger.info(f"Moved (copy): {source.name} -> {destination}")
        return RelocationResult(source_path=source, destination_path=destination, success=True)

    @staticmethod
    def _discard_partial(destination: Path):
        try:
            if destination.exists():
                destination.unlink()
        except OSError as e:
            logger.warning(f"Could not remove partial copy {destination}: {e}")
