"""Test cases for BuildOrchestrator - end-to-end build sequencing."""

import json
import pytest
from unittest.mock import AsyncMock
from appbuilder.build.manager import BuildOrchestrator, build_app
from appbuilder.config.settings_loader import GlobalSettings
from appbuilder.core.errors import ConfigLoadError, TranspileError
from appbuilder.core.models import BuildResult, Diagnostic, LogLevel
from appbuilder.monitoring.build_log import BuildLog

from conftest import FakeContentStore, RecordingTranspiler, write_file


@pytest.fixture
def metadata_generator():
    generator = AsyncMock()
    generator.generate = AsyncMock(return_value=None)
    return generator


def output_names(dest):
    return sorted(p.name for p in (dest / "src" / "widget").iterdir())


class TestBuildOrchestrator:
    """Test suite for BuildOrchestrator."""

    @pytest.mark.asyncio
    async def test_full_build(self, app_src, dest, fake_store, recording_transpiler):
        orchestrator = BuildOrchestrator(transpiler=recording_transpiler, store=fake_store)

        result = await orchestrator.build(app_src, dest)

        assert isinstance(result, BuildResult)
        assert output_names(dest) == [
            "Home.jsx", "nav.Bar.jsx", "store.module.js", "utils.format.module.js"
        ]
        assert result.published == {"img/bg.jpg": "cid-bg.jpg", "logo.png": "cid-logo.png"}
        assert json.loads((dest / "ipfs.json").read_text()) == result.published
        assert json.loads((app_src / "ipfs.json").read_text()) == result.published
        data = json.loads((dest / "data.json").read_text())
        assert sorted(data["deployer.near"]["widget"]) == ["Home", "nav.Bar"]

    @pytest.mark.asyncio
    async def test_context_is_shared_and_complete(self, app_src, dest, fake_store, recording_transpiler):
        await BuildOrchestrator(transpiler=recording_transpiler, store=fake_store).build(app_src, dest)

        contexts = {id(call[1]) for call in recording_transpiler.calls}
        assert len(contexts) == 1
        context = recording_transpiler.calls[0][1]
        assert context.modules == ("store", "utils/format")
        assert dict(context.aliases) == {"GATEWAY": "near.social"}
        assert context.asset_map["logo.png"] == "cid-logo.png"
        assert context.gateway == "https://ipfs.example.test/ipfs"

    @pytest.mark.asyncio
    async def test_modules_are_transpiled_before_widgets(self, app_src, dest, fake_store, recording_transpiler):
        await BuildOrchestrator(transpiler=recording_transpiler, store=fake_store).build(app_src, dest)

        contents = [call[0] for call in recording_transpiler.calls]
        assert contents == [
            "export const store = {};",
            "export const fmt = 1;",
            "return <Home />;",
            "return <Bar />;",
        ]

    @pytest.mark.asyncio
    async def test_environment_selects_overrides(self, app_src, dest, fake_store, recording_transpiler, metadata_generator):
        orchestrator = BuildOrchestrator(
            transpiler=recording_transpiler, store=fake_store, metadata_generator=metadata_generator
        )

        await orchestrator.build(app_src, dest, "testnet")

        assert recording_transpiler.calls[0][1].gateway == "https://testnet-ipfs.example.test/ipfs"
        metadata_generator.generate.assert_awaited_once_with(app_src.resolve(), dest.resolve(), "deployer.testnet")

    @pytest.mark.asyncio
    async def test_logs_are_aggregated_in_unit_order(self, app_src, dest, fake_store):
        transpiler = RecordingTranspiler(diagnostics={
            "export const fmt = 1;": [Diagnostic("typed", LogLevel.WARNING, 1)],
            "return <Home />;": [Diagnostic("home", LogLevel.ERROR, 4)],
        })
        build_log = BuildLog()

        result = await BuildOrchestrator(transpiler=transpiler, store=fake_store, build_log=build_log).build(app_src, dest)

        assert [(str(e.source), e.message) for e in result.logs] == [
            ("module/utils/format.ts:1", "typed"),
            ("widget/Home.jsx:4", "home"),
        ]
        assert len(build_log) == 2

    @pytest.mark.asyncio
    async def test_repeated_builds_return_only_their_own_logs(self, app_src, dest, fake_store, warning_diagnostic):
        transpiler = RecordingTranspiler(diagnostics={"return <Home />;": [warning_diagnostic]})
        build_log = BuildLog()
        orchestrator = BuildOrchestrator(transpiler=transpiler, store=fake_store, build_log=build_log)

        first = await orchestrator.build(app_src, dest)
        second = await orchestrator.build(app_src, dest)

        assert len(first.logs) == 1
        assert len(second.logs) == 1
        assert str(second.logs[0].source) == "widget/Home.jsx:3"
        assert len(build_log) == 2

    @pytest.mark.asyncio
    async def test_rebuild_publishes_nothing_and_removes_stale_outputs(self, app_src, dest, fake_store, recording_transpiler):
        orchestrator = BuildOrchestrator(transpiler=recording_transpiler, store=fake_store)
        await orchestrator.build(app_src, dest)
        fake_store.calls.clear()

        (app_src / "widget" / "nav" / "Bar.tsx").rename(app_src / "widget" / "nav" / "Menu.tsx")
        result = await BuildOrchestrator(transpiler=recording_transpiler, store=fake_store).build(app_src, dest)

        assert fake_store.calls == []
        assert result.published == {}
        assert output_names(dest) == [
            "Home.jsx", "nav.Menu.jsx", "store.module.js", "utils.format.module.js"
        ]
        assert result.removed == [dest.resolve() / "src" / "widget" / "nav.Bar.jsx"]

    @pytest.mark.asyncio
    async def test_missing_aliases_and_ledger_use_empty_defaults(self, app_src, dest, fake_store, recording_transpiler):
        (app_src / "aliases.json").unlink()

        await BuildOrchestrator(transpiler=recording_transpiler, store=fake_store).build(app_src, dest)

        assert dict(recording_transpiler.calls[0][1].aliases) == {}

    @pytest.mark.asyncio
    async def test_configured_alias_sources(self, app_src, dest, fake_store, recording_transpiler, base_app_config):
        base_app_config["aliases"] = ["aliases/base.json", "aliases/local.json"]
        write_file(app_src / "bos.config.json", json.dumps(base_app_config))
        write_file(app_src / "aliases" / "base.json", json.dumps({"A": "base", "B": "base"}))
        write_file(app_src / "aliases" / "local.json", json.dumps({"B": "local"}))

        await BuildOrchestrator(transpiler=recording_transpiler, store=fake_store).build(app_src, dest)

        assert dict(recording_transpiler.calls[0][1].aliases) == {"A": "base", "B": "local"}

    @pytest.mark.asyncio
    async def test_config_failure_has_no_side_effects(self, app_src, dest, recording_transpiler, metadata_generator):
        """Test that no publish, transpile or write happens when the config cannot load"""
        (app_src / "bos.config.json").unlink()
        store = FakeContentStore()
        orchestrator = BuildOrchestrator(
            transpiler=recording_transpiler, store=store, metadata_generator=metadata_generator
        )

        with pytest.raises(ConfigLoadError):
            await orchestrator.build(app_src, dest)

        assert store.calls == []
        assert recording_transpiler.calls == []
        metadata_generator.generate.assert_not_awaited()
        assert not dest.exists()
        assert not (app_src / "ipfs.json").exists()

    @pytest.mark.asyncio
    async def test_transpile_failure_aborts_build_without_rollback(self, app_src, dest, fake_store, metadata_generator):
        write_file(app_src / "widget" / "Home.jsx", "BROKEN")
        write_file(dest / "src" / "widget" / "Stale.jsx", "old")
        orchestrator = BuildOrchestrator(
            transpiler=RecordingTranspiler(fail_on_content="BROKEN"),
            store=fake_store,
            metadata_generator=metadata_generator,
        )

        with pytest.raises(TranspileError):
            await orchestrator.build(app_src, dest)

        # Published assets and module outputs stay, reconciliation never ran
        assert (app_src / "ipfs.json").exists()
        assert output_names(dest) == ["Stale.jsx", "store.module.js", "utils.format.module.js"]
        metadata_generator.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_custom_ledger_filename(self, app_src, dest, fake_store, recording_transpiler):
        settings = GlobalSettings.default()
        settings.publish.ledger_filename = "assets.json"

        await BuildOrchestrator(transpiler=recording_transpiler, store=fake_store, settings=settings).build(app_src, dest)

        assert (dest / "assets.json").exists()
        assert not (dest / "ipfs.json").exists()

    @pytest.mark.asyncio
    async def test_build_app_entry_point(self, app_src, dest, fake_store):
        result = await build_app(app_src, dest, store=fake_store)

        assert result.logs == []
        assert (dest / "src" / "widget" / "Home.jsx").read_text() == "return <Home />;"
