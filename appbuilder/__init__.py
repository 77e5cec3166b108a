"""
App Builder - incremental build pipeline for module/widget app bundles

Main modules:
- core: Shared models and the error taxonomy
- config: App configuration, tool settings and alias merging
- ipfs: Content store client
- build: Asset publishing, transpilation and output reconciliation
- cli: Command line entry point
"""

from .core.models import BuildResult, LogEntry
from .core.errors import BuildError
from .build.manager import BuildOrchestrator, build_app
from .config.config_loader import ConfigLoader, BuildConfig

__version__ = "1.0.0"
__all__ = [
    'BuildResult',
    'LogEntry',
    'BuildError',
    'BuildOrchestrator',
    'build_app',
    'ConfigLoader',
    'BuildConfig',
]
