"""
Error taxonomy for the build pipeline.

Every error raised out of a build carries the stage that failed so callers
can report it without inspecting the exception type.
"""
from pathlib import Path
from typing import Optional, Union


PathLike = Union[str, Path]


class BuildError(Exception):
    """Base class for all build failures."""

    stage = "build"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class ConfigLoadError(BuildError):
    """Raised when the app configuration cannot be read or validated."""

    stage = "config"

    def __init__(self, message: str, path: Optional[PathLike] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class AssetPublishError(BuildError):
    """Raised when an asset cannot be published to the content store."""

    stage = "publish"

    def __init__(self, message: str, path: Optional[PathLike] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class TranspileError(BuildError):
    """Raised when the transpiler rejects a source unit."""

    stage = "transpile"

    def __init__(self, message: str, file: Optional[str] = None, line: Optional[int] = None):
        super().__init__(message)
        self.file = file
        self.line = line

    def __str__(self) -> str:
        if self.file is None:
            return super().__str__()
        location = self.file if self.line is None else f"{self.file}:{self.line}"
        return f"[{self.stage}] {location}: {self.message}"


class OutputWriteError(BuildError):
    """Raised when a transpiled artifact cannot be written."""

    stage = "write"

    def __init__(self, message: str, path: Optional[PathLike] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class OutputCollisionError(OutputWriteError):
    """Raised when two source units map to the same output file."""

    def __init__(self, path: PathLike, first: str, second: str):
        super().__init__(
            f"{second} would overwrite the output of {first} ({Path(path).name})",
            path,
        )
        self.first = first
        self.second = second


class FileSystemError(BuildError):
    """Raised for read/delete failures outside of artifact writes."""

    stage = "filesystem"

    def __init__(self, message: str, path: Optional[PathLike] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class BuildCancelledError(BuildError):
    """Raised when the caller's cancellation signal is set mid-build."""

    stage = "cancelled"
