"""
Removes outputs that no longer correspond to any source unit.
"""
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union
import logging

from ..core.errors import FileSystemError


class OutputReconciler:
    """Snapshots the output directory and deletes stale files after a build"""

    def __init__(self, output_dir: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.output_dir = Path(output_dir)
        self.logger = logger or logging.getLogger(__name__)
        self._prior: Optional[Set[Path]] = None

    def snapshot(self) -> Set[Path]:
        """
        Record the current output files. Must run before anything is written.

        Returns:
            The recorded paths
        """
        if self.output_dir.exists():
            self._prior = {path for path in self.output_dir.rglob("*") if path.is_file()}
        else:
            self._prior = set()
        self.logger.debug(f"Recorded {len(self._prior)} existing output(s)")
        return set(self._prior)

    def reconcile(self, new_paths: Iterable[Union[str, Path]]) -> List[Path]:
        """
        Delete every snapshotted path that is not among the new outputs.

        Args:
            new_paths: Paths written by the current build

        Returns:
            Deleted paths, sorted
        """
        if self._prior is None:
            raise RuntimeError("snapshot() must be called before reconcile()")

        keep = {Path(path) for path in new_paths}
        removed = []
        for path in sorted(self._prior - keep):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise FileSystemError(f"Failed to remove stale output {path.name}: {e}", path) from e
            removed.append(path)
            self.logger.info(f"Removed stale output: {path.name}")

        return removed
