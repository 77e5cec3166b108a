"""
Build pipeline for module/widget apps.
Handles asset publishing, transpilation and output reconciliation.
"""

from .catalog import SourceCatalog
from .context import BuildContextBuilder
from .publisher import AssetLedger, AssetPublisher
from .transpile import Transpiler, PassthroughTranspiler, TranspileCoordinator, load_transpiler
from .reconciler import OutputReconciler
from .metadata import MetadataGenerator, DataJsonGenerator
from .lock import BuildLockManager
from .manager import BuildOrchestrator, build_app

__all__ = [
    'SourceCatalog',
    'BuildContextBuilder',
    'AssetLedger',
    'AssetPublisher',
    'Transpiler',
    'PassthroughTranspiler',
    'TranspileCoordinator',
    'load_transpiler',
    'OutputReconciler',
    'MetadataGenerator',
    'DataJsonGenerator',
    'BuildLockManager',
    'BuildOrchestrator',
    'build_app',
]
