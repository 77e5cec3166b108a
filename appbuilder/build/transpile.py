"""
Drives the transpiler over batches of source units and writes the artifacts.
"""
import asyncio
import importlib
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, Union
import logging

from ..core.errors import (
    BuildCancelledError,
    FileSystemError,
    OutputCollisionError,
    OutputWriteError,
    TranspileError,
)
from ..core.models import (
    BuildContext,
    LogEntry,
    SourceRef,
    SourceUnit,
    TranspiledArtifact,
    TranspileOptions,
    TranspileResult,
)


class Transpiler(Protocol):
    """Turns one source unit's content into deployable code"""

    async def transpile(
        self,
        content: str,
        context: BuildContext,
        options: TranspileOptions
    ) -> TranspileResult:
        ...


class PassthroughTranspiler:
    """Emits the source unchanged, with no diagnostics"""

    async def transpile(
        self,
        content: str,
        context: BuildContext,
        options: TranspileOptions
    ) -> TranspileResult:
        return TranspileResult(code=content)


def load_transpiler(reference: str) -> Transpiler:
    """
    Load a transpiler from a 'package.module:attribute' reference.

    The attribute may be a transpiler instance or a zero-argument factory
    (such as a class).
    """
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Transpiler reference must look like 'module:attribute', got {reference!r}")

    module = importlib.import_module(module_name)
    target = module
    for part in attribute.split("."):
        target = getattr(target, part)

    if isinstance(target, type) or (callable(target) and not hasattr(target, "transpile")):
        transpiler = target()
    else:
        transpiler = target
    if not hasattr(transpiler, "transpile"):
        raise ValueError(f"{reference} does not provide a transpile() coroutine")
    return transpiler


class TranspileCoordinator:
    """
    Transpiles batches of units against one shared context.

    A single coordinator is used for every batch of a build so that output
    identity collisions are detected across modules and widgets.
    """

    def __init__(
        self,
        transpiler: Transpiler,
        output_dir: Union[str, Path],
        source_root: Union[str, Path],
        cancel_event: Optional[asyncio.Event] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize coordinator.

        Args:
            transpiler: External transpiler
            output_dir: Directory receiving every artifact
            source_root: Root used to report unit paths in log entries
            cancel_event: Checked before each unit
        """
        self.transpiler = transpiler
        self.output_dir = Path(output_dir)
        self.source_root = Path(source_root)
        self.cancel_event = cancel_event
        self.logger = logger or logging.getLogger(__name__)
        self._claimed: Dict[Path, str] = {}

    @property
    def written_paths(self) -> List[Path]:
        """Every output path produced so far, in write order"""
        return list(self._claimed)

    def output_path(self, unit: SourceUnit) -> Path:
        return self.output_dir / unit.output_name

    def source_label(self, unit: SourceUnit) -> str:
        try:
            return unit.path.relative_to(self.source_root).as_posix()
        except ValueError:
            return unit.path.as_posix()

    async def run(
        self,
        units: Sequence[SourceUnit],
        context: BuildContext
    ) -> Tuple[List[TranspiledArtifact], List[LogEntry]]:
        """
        Transpile and write every unit in order, stopping at the first failure.

        Returns:
            The written artifacts and their tagged log entries, in unit order
        """
        artifacts: List[TranspiledArtifact] = []
        logs: List[LogEntry] = []

        for unit in units:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise BuildCancelledError(f"Build cancelled before {self.source_label(unit)}")

            artifact, unit_logs = await self.transpile_unit(unit, context)
            artifacts.append(artifact)
            logs.extend(unit_logs)

        return artifacts, logs

    async def transpile_unit(
        self,
        unit: SourceUnit,
        context: BuildContext
    ) -> Tuple[TranspiledArtifact, List[LogEntry]]:
        label = self.source_label(unit)
        output_path = self.output_path(unit)

        claimed_by = self._claimed.get(output_path)
        if claimed_by is not None:
            raise OutputCollisionError(output_path, claimed_by, label)

        try:
            content = unit.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FileSystemError(f"Failed to read {label}: {e}", unit.path) from e

        options = TranspileOptions(
            compile_typescript=unit.is_typed,
            format=context.config.format,
        )
        try:
            result = await self.transpiler.transpile(content, context, options)
        except TranspileError as e:
            if e.file is None:
                e.file = label
            raise
        except Exception as e:
            raise TranspileError(str(e), file=label, line=getattr(e, "line", None)) from e

        logs = [
            LogEntry(
                level=diagnostic.level,
                message=diagnostic.message,
                source=SourceRef(file=label, line=diagnostic.line),
            )
            for diagnostic in result.diagnostics
        ]

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(result.code, encoding="utf-8")
        except OSError as e:
            raise OutputWriteError(f"Failed to write {output_path.name}: {e}", output_path) from e

        self._claimed[output_path] = label
        self.logger.debug(f"Transpiled {label} -> {output_path.name}")

        artifact = TranspiledArtifact(
            unit=unit,
            output_path=output_path,
            code=result.code,
            diagnostics=list(result.diagnostics),
        )
        return artifact, logs
