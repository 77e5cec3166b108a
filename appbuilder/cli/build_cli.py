#!/usr/bin/env python3
"""
CLI tool for building apps
"""

import asyncio
import click
import logging
import sys
from pathlib import Path
from typing import Optional

from ..build.catalog import SourceCatalog
from ..build.lock import BuildLockManager
from ..build.manager import BuildOrchestrator
from ..build.transpile import load_transpiler
from ..config.settings_loader import load_settings
from ..core.errors import BuildError
from ..core.models import BuildResult, SourceKind
from ..monitoring.build_log import BuildLog, LoggingCollector


class BuildCLI:
    """Command-line interface for app builds"""

    def __init__(self, settings):
        self.settings = settings
        self.logger = logging.getLogger(__name__)

    async def run_build(self, src: str, dest: Optional[str], environment: Optional[str],
                        transpiler_ref: Optional[str], use_lock: bool,
                        collect_progress: bool) -> int:
        """Run one build and print its log entries"""
        src_path = Path(src)
        dest_path = Path(dest) if dest else src_path / "build"

        try:
            transpiler = load_transpiler(transpiler_ref) if transpiler_ref else None
        except (ImportError, AttributeError, ValueError) as e:
            click.echo(f"Could not load transpiler '{transpiler_ref}': {e}", err=True)
            return 1

        build_log = BuildLog()
        orchestrator = BuildOrchestrator(
            transpiler=transpiler,
            settings=self.settings,
            build_log=build_log,
        )

        try:
            if use_lock:
                lock = BuildLockManager(dest_path, self.settings.build_system.lock_timeout)
                async with lock:
                    result = await self._build(orchestrator, build_log, src_path, dest_path,
                                               environment, collect_progress)
            else:
                result = await self._build(orchestrator, build_log, src_path, dest_path,
                                           environment, collect_progress)
        except BuildError as e:
            self._print_logs(build_log)
            click.echo(f"Build failed {e}", err=True)
            return 1
        except TimeoutError as e:
            click.echo(str(e), err=True)
            return 1

        self._print_logs(build_log)
        self._print_summary(result, build_log)
        return 0

    async def _build(self, orchestrator, build_log, src_path, dest_path, environment,
                     collect_progress) -> BuildResult:
        if not collect_progress:
            return await orchestrator.build(src_path, dest_path, environment)
        with LoggingCollector(build_log):
            return await orchestrator.build(src_path, dest_path, environment)

    def _print_logs(self, build_log: BuildLog):
        for entry in build_log.entries:
            location = f" {entry.source}" if entry.source else ""
            click.echo(f"{entry.level.value.upper()}{location} {entry.message}")

    def _print_summary(self, result: BuildResult, build_log: BuildLog):
        counts = build_log.counts()
        click.echo(
            f"Built {len(result.artifacts)} file(s), removed {len(result.removed)}, "
            f"published {len(result.published)} asset(s) "
            f"({counts['error']} error(s), {counts['warning']} warning(s))"
        )

    def show_catalog(self, src: str) -> int:
        """List discovered units and their output names without building"""
        src_path = Path(src)
        for kind in (SourceKind.MODULE, SourceKind.WIDGET):
            units = SourceCatalog(src_path / kind.value, kind).scan()
            click.echo(f"\n{kind.value.capitalize()}s ({len(units)})")
            click.echo("-" * (len(kind.value) + 8))
            for unit in units:
                click.echo(f"  {unit.relative_path.as_posix()} -> {unit.output_name}")
        return 0


@click.group()
@click.option('--settings', 'settings_path', default=None, help='Path to appbuilder settings YAML')
@click.option('--log-level', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
              help='Set the logging level')
@click.pass_context
def cli(ctx, settings_path, log_level):
    """App Builder - publish assets, transpile modules and widgets"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    settings = load_settings(settings_path)

    ctx.ensure_object(dict)
    ctx.obj['cli'] = BuildCLI(settings)


@cli.command()
@click.argument('src', type=click.Path(exists=True, file_okay=False))
@click.argument('dest', required=False)
@click.option('--env', 'environment', default=None, help='Environment to resolve the config for')
@click.option('--transpiler', 'transpiler_ref', default=None,
              help='Transpiler to use, as module:attribute')
@click.option('--no-lock', is_flag=True, help='Do not lock the destination directory')
@click.option('--collect-progress', is_flag=True, help='Include pipeline progress in the build log')
@click.pass_context
def build(ctx, src, dest, environment, transpiler_ref, no_lock, collect_progress):
    """Build the app in SRC into DEST (default SRC/build)"""
    cli_instance = ctx.obj['cli']
    use_lock = cli_instance.settings.build_system.use_lock and not no_lock
    return_code = asyncio.run(cli_instance.run_build(
        src, dest, environment, transpiler_ref, use_lock, collect_progress
    ))
    sys.exit(return_code)


@cli.command()
@click.argument('src', type=click.Path(exists=True, file_okay=False))
@click.pass_context
def catalog(ctx, src):
    """List modules and widgets with their output names"""
    cli_instance = ctx.obj['cli']
    sys.exit(cli_instance.show_catalog(src))


if __name__ == "__main__":
    cli()
