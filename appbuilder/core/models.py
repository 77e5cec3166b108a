"""
Models shared across the build pipeline.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


SOURCE_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx")
TYPED_EXTENSIONS = (".ts", ".tsx")

MODULE_SUFFIX = ".module.js"
WIDGET_SUFFIX = ".jsx"


class SourceKind(Enum):
    """Logical kind of a source unit"""
    MODULE = "module"
    WIDGET = "widget"

    @property
    def output_suffix(self) -> str:
        return MODULE_SUFFIX if self is SourceKind.MODULE else WIDGET_SUFFIX


class LogLevel(Enum):
    """Severity of a build log entry"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class SourceUnit:
    """A single discovered source file"""
    path: Path
    root: Path
    kind: SourceKind

    @property
    def extension(self) -> str:
        return self.path.suffix

    @property
    def relative_path(self) -> Path:
        """Path relative to the root of its kind"""
        return self.path.relative_to(self.root)

    @property
    def is_typed(self) -> bool:
        """Whether type annotations must be compiled away"""
        return self.extension in TYPED_EXTENSIONS

    @property
    def logical_name(self) -> str:
        """Relative path without extension, '/' separated"""
        return self.relative_path.with_suffix('').as_posix()

    @property
    def output_name(self) -> str:
        """Flattened output file name, e.g. foo/bar.ts -> foo.bar.module.js"""
        flat = ".".join(self.relative_path.with_suffix('').parts)
        return f"{flat}{self.kind.output_suffix}"


@dataclass(frozen=True)
class BuildContext:
    """Read-only parameters shared by every transpile call of one build"""
    config: Any
    modules: Tuple[str, ...]
    asset_map: Mapping[str, str]
    gateway: str
    aliases: Mapping[str, str]

    @classmethod
    def create(
        cls,
        config: Any,
        modules: List[str],
        asset_map: Dict[str, str],
        gateway: str,
        aliases: Dict[str, str]
    ) -> 'BuildContext':
        """Create a context over private, read-only copies of the inputs"""
        return cls(
            config=config,
            modules=tuple(modules),
            asset_map=MappingProxyType(dict(asset_map)),
            gateway=gateway,
            aliases=MappingProxyType(dict(aliases)),
        )


@dataclass(frozen=True)
class TranspileOptions:
    """Per-unit options handed to the transpiler"""
    compile_typescript: bool = False
    format: bool = True


@dataclass
class Diagnostic:
    """A message reported by the transpiler for one unit"""
    message: str
    level: LogLevel = LogLevel.INFO
    line: Optional[int] = None


@dataclass
class TranspileResult:
    """Raw transpiler output"""
    code: str
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass(frozen=True)
class SourceRef:
    """Where a log entry originated"""
    file: str
    line: Optional[int] = None

    def __str__(self) -> str:
        return self.file if self.line is None else f"{self.file}:{self.line}"


@dataclass
class LogEntry:
    """A build log entry"""
    level: LogLevel
    message: str
    source: Optional[SourceRef] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['level'] = self.level.value
        return data


@dataclass
class TranspiledArtifact:
    """A written output for one source unit"""
    unit: SourceUnit
    output_path: Path
    code: str
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class BuildResult:
    """Result of a successful build"""
    logs: List[LogEntry] = field(default_factory=list)
    artifacts: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    published: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'logs': [entry.to_dict() for entry in self.logs],
            'artifacts': [str(p) for p in self.artifacts],
            'removed': [str(p) for p in self.removed],
            'published': dict(self.published),
        }
