"""
Generates data.json describing the built widgets for the deploy account.
"""
import json
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union
import logging

from ..core.errors import FileSystemError
from ..core.models import MODULE_SUFFIX, WIDGET_SUFFIX, SourceKind, SourceUnit
from .catalog import SourceCatalog


class MetadataGenerator(Protocol):
    """Produces downstream metadata once outputs are reconciled"""

    async def generate(self, src: Path, dest: Path, deploy_account: str) -> None:
        ...


class DataJsonGenerator:
    """Writes <dest>/data.json from the widget outputs in <dest>/src/widget"""

    def __init__(self, filename: str = "data.json", logger: Optional[logging.Logger] = None):
        self.filename = filename
        self.logger = logger or logging.getLogger(__name__)

    def load_sidecar(self, unit: SourceUnit) -> Dict[str, Any]:
        """
        Read optional widget metadata stored next to its source file.

        Args:
            unit: Widget source unit, e.g. <src>/widget/x/y.tsx

        Returns:
            The mapping from <src>/widget/x/y.metadata.json, or an empty dict if there is none
        """
        sidecar = unit.path.with_suffix(".metadata.json")
        if not sidecar.exists():
            return {}

        try:
            with open(sidecar, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise FileSystemError(f"Failed to read widget metadata {sidecar.name}: {e}", sidecar) from e

        return data if isinstance(data, dict) else {}

    async def generate(self, src: Union[str, Path], dest: Union[str, Path], deploy_account: str) -> None:
        src = Path(src)
        dest = Path(dest)
        widget_dir = dest / "src" / "widget"

        sources = {
            unit.output_name: unit
            for unit in SourceCatalog(src / "widget", SourceKind.WIDGET, logger=self.logger).scan()
        }

        widgets: Dict[str, Dict[str, Any]] = {}
        if widget_dir.exists():
            for output in sorted(widget_dir.iterdir()):
                name = output.name
                if not output.is_file() or name.endswith(MODULE_SUFFIX) or not name.endswith(WIDGET_SUFFIX):
                    continue
                unit = sources.get(name)
                metadata = self.load_sidecar(unit) if unit else {}
                widgets[name[:-len(WIDGET_SUFFIX)]] = {"metadata": metadata}

        data = {deploy_account: {"widget": widgets}}
        target = dest / self.filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise FileSystemError(f"Failed to write {self.filename}: {e}", target) from e

        self.logger.info(f"Generated {self.filename} with {len(widgets)} widget(s)")
