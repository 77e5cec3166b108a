"""
Main build orchestrator that sequences one app build.
"""
import asyncio
import logging
from contextlib import AsyncExitStack
from pathlib import Path
from typing import List, Optional, Union

from ..config.aliases import AliasMerger
from ..config.config_loader import BuildConfig, ConfigLoader
from ..config.settings_loader import GlobalSettings
from ..core.errors import BuildError
from ..core.models import BuildResult, LogEntry, SourceKind
from ..ipfs.client import ContentStore, IpfsUploader
from ..monitoring.build_log import BuildLog
from .catalog import SourceCatalog
from .context import BuildContextBuilder
from .metadata import DataJsonGenerator, MetadataGenerator
from .publisher import AssetLedger, AssetPublisher
from .reconciler import OutputReconciler
from .transpile import PassthroughTranspiler, TranspileCoordinator, Transpiler


class BuildOrchestrator:
    """
    Main orchestrator for building an app.

    Order: config, aliases, asset publish, catalog, context, output
    snapshot, modules, widgets, reconcile, metadata. Nothing after the
    config step runs if the config cannot be loaded; later failures leave
    their partial side effects in place.
    """

    def __init__(
        self,
        transpiler: Optional[Transpiler] = None,
        store: Optional[ContentStore] = None,
        metadata_generator: Optional[MetadataGenerator] = None,
        settings: Optional[GlobalSettings] = None,
        build_log: Optional[BuildLog] = None,
        cancel_event: Optional[asyncio.Event] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize build orchestrator.

        Args:
            transpiler: Transpiler used for every unit (defaults to passthrough)
            store: Content store client (defaults to an IpfsUploader built from the app config)
            metadata_generator: Invoked after reconciliation (defaults to data.json)
            settings: Tool settings
            build_log: Sink that also receives the log entries of every build
            cancel_event: Checked between units and uploads
        """
        self.transpiler = transpiler or PassthroughTranspiler()
        self.store = store
        self.metadata_generator = metadata_generator or DataJsonGenerator()
        self.settings = settings or GlobalSettings.default()
        self.build_log = build_log or BuildLog()
        self.cancel_event = cancel_event
        self.logger = logger or logging.getLogger(__name__)

        self.alias_merger = AliasMerger()
        self.context_builder = BuildContextBuilder()

    def load_config(self, src: Path, environment: str) -> BuildConfig:
        config_path = src / self.settings.build_system.config_filename
        return ConfigLoader.load_from_file(config_path, environment)

    def alias_sources(self, src: Path, config: BuildConfig) -> List[Path]:
        sources = config.aliases if config.aliases else ["aliases.json"]
        return [src / source for source in sources]

    def _default_store(self, config: BuildConfig) -> IpfsUploader:
        return IpfsUploader(
            upload_api=config.ipfs.upload_api,
            headers=config.ipfs.upload_api_headers,
            timeout=self.settings.http.timeout,
            max_retries=self.settings.http.max_retries,
        )

    async def build(
        self,
        src: Union[str, Path],
        dest: Union[str, Path],
        environment: Optional[str] = None
    ) -> BuildResult:
        """
        Build the app at src into dest.

        Returns:
            BuildResult with the aggregated log entries

        Raises:
            BuildError: Any stage failure; ConfigLoadError before side effects
        """
        src = Path(src).resolve()
        dest = Path(dest).resolve()
        environment = environment or self.settings.build_system.default_environment

        self.logger.info(f"[{src}] Building app ({environment})")

        try:
            config = self.load_config(src, environment)
        except BuildError as e:
            self.logger.error(f"[{src}] App failed to build: {e}")
            raise

        try:
            result = await self._build_with_config(src, dest, config)
        except BuildError as e:
            self.logger.error(f"[{src}] App failed to build: {e}")
            raise

        self.logger.info(f"[{src}] App built successfully")
        return result

    async def _build_with_config(self, src: Path, dest: Path, config: BuildConfig) -> BuildResult:
        aliases = self.alias_merger.merge(self.alias_sources(src, config))

        async with AsyncExitStack() as stack:
            store = self.store
            if store is None:
                store = await stack.enter_async_context(self._default_store(config))

            ledger_filename = self.settings.publish.ledger_filename
            publisher = AssetPublisher(
                ledger=AssetLedger(src / ledger_filename),
                store=store,
                mirror_path=dest / ledger_filename,
                max_concurrent_uploads=self.settings.publish.max_concurrent_uploads,
                cancel_event=self.cancel_event,
            )
            asset_map = await publisher.publish(src / "ipfs")

        modules = SourceCatalog(src / "module", SourceKind.MODULE).scan()
        widgets = SourceCatalog(src / "widget", SourceKind.WIDGET).scan()

        context = self.context_builder.build(config, modules, asset_map, aliases)

        output_dir = dest / "src" / "widget"
        reconciler = OutputReconciler(output_dir)
        reconciler.snapshot()

        coordinator = TranspileCoordinator(
            transpiler=self.transpiler,
            output_dir=output_dir,
            source_root=src,
            cancel_event=self.cancel_event,
        )

        build_logs: List[LogEntry] = []
        for kind, units in ((SourceKind.MODULE, modules), (SourceKind.WIDGET, widgets)):
            self.logger.info(f"Transpiling {len(units)} {kind.value}s")
            try:
                _, logs = await coordinator.run(units, context)
            except BuildError:
                self.logger.error(f"Failed to transpile {kind.value}s")
                raise
            build_logs.extend(logs)
            self.build_log.extend(logs)
            self.logger.info(f"Transpiled {len(units)} {kind.value}s")

        written = coordinator.written_paths
        removed = reconciler.reconcile(written)

        await self.metadata_generator.generate(src, dest, config.accounts.deploy)

        return BuildResult(
            logs=build_logs,
            artifacts=written,
            removed=removed,
            published=dict(publisher.published),
        )


async def build_app(
    src: Union[str, Path],
    dest: Union[str, Path],
    network: str = "mainnet",
    transpiler: Optional[Transpiler] = None,
    store: Optional[ContentStore] = None,
    settings: Optional[GlobalSettings] = None,
    cancel_event: Optional[asyncio.Event] = None
) -> BuildResult:
    """Build one app with the default collaborators"""
    orchestrator = BuildOrchestrator(
        transpiler=transpiler,
        store=store,
        settings=settings,
        cancel_event=cancel_event,
    )
    return await orchestrator.build(src, dest, network)
