"""
Scans module and widget directories for source units.
"""
from pathlib import Path
from typing import List, Optional, Sequence, Union
import logging

from ..core.models import SourceKind, SourceUnit, SOURCE_EXTENSIONS


class SourceCatalog:
    """Enumerates the source units of one kind under a root directory"""

    def __init__(
        self,
        root: Union[str, Path],
        kind: SourceKind,
        extensions: Sequence[str] = SOURCE_EXTENSIONS,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize catalog.

        Args:
            root: Directory holding the units, e.g. <src>/module
            kind: Logical kind assigned to every unit found
            extensions: Allowed source file extensions
        """
        self.root = Path(root)
        self.kind = kind
        self.extensions = tuple(extensions)
        self.logger = logger or logging.getLogger(__name__)

    def scan(self) -> List[SourceUnit]:
        """
        Recursively scan for source files.

        Returns:
            Units ordered lexicographically by their path relative to the root
        """
        if not self.root.exists():
            self.logger.debug(f"{self.kind.value} directory does not exist: {self.root}")
            return []

        files = [
            path for path in self.root.rglob("*")
            if path.is_file() and path.suffix in self.extensions
        ]
        files.sort(key=lambda path: path.relative_to(self.root).parts)

        units = [SourceUnit(path=path, root=self.root, kind=self.kind) for path in files]
        self.logger.info(f"Found {len(units)} {self.kind.value}s in {self.root}")
        return units
