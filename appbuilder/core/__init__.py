from .errors import (
    BuildError,
    ConfigLoadError,
    AssetPublishError,
    TranspileError,
    OutputWriteError,
    OutputCollisionError,
    FileSystemError,
    BuildCancelledError,
)
from .models import (
    SourceKind,
    SourceUnit,
    BuildContext,
    TranspileOptions,
    Diagnostic,
    TranspileResult,
    TranspiledArtifact,
    LogLevel,
    LogEntry,
    SourceRef,
    BuildResult,
)
