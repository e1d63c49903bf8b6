"""Collision-free destination names with a bounded numeric suffix."""

from dataclasses import dataclass
from pathlib import Path

from ..utils.logging import get_logger

logger = get_logger(__name__)

MAX_SUFFIX = 99


@dataclass(frozen=True)
class ResolvedPath:
    """Result of resolving a destination name."""

    path: Path

    # True when every suffix up to the ceiling was taken and ``path`` may collide
    exhausted: bool = False


class PathResolver:
    """
    Finds a destination path that does not overwrite an existing file.

    ``photo.tif`` becomes ``photo_01.tif``, ``photo_02.tif`` and so on.
    The search stops at ``photo_99.tif``: if that is taken too, it is
    returned anyway and flagged as exhausted.

    The answer reflects the filesystem at call time only; callers that
    race with other writers must re-check.
    """

    def __init__(self, max_suffix: int = MAX_SUFFIX):
        if max_suffix < 1:
            raise ValueError("max_suffix must be at least 1")
        self.max_suffix = max_suffix
        self._width = max(2, len(str(max_suffix)))

    def candidate(self, target_dir: Path, desired_name: str, number: int) -> Path:
        """Path of the ``number``-th suffixed candidate."""
        desired = Path(desired_name)
        return Path(target_dir) / f"{desired.stem}_{number:0{self._width}d}{desired.suffix}"

    def resolve(self, target_dir: Path, desired_name: str) -> ResolvedPath:
        """
        Resolve a free path for ``desired_name`` inside ``target_dir``.

        Args:
            target_dir: Directory the file will land in
            desired_name: Base name to start from

        Returns:
            ResolvedPath; ``exhausted`` is set when the ceiling was reached
            and the returned path may already exist.
        """
        target_dir = Path(target_dir)
        path = target_dir / desired_name
        if not path.exists():
            return ResolvedPath(path=path)

        for number in range(1, self.max_suffix + 1):
            path = self.candidate(target_dir, desired_name, number)
            if not path.exists():
                logger.debug(f"Name taken, using {path.name}")
                return ResolvedPath(path=path)

        logger.warning(
            f"All {self.max_suffix} suffixes for {desired_name} are taken in {target_dir}; "
            f"reusing {path.name}"
        )
        return ResolvedPath(path=path, exhausted=True)
