"""Pytest configuration and fixtures for App Builder tests."""

import json
import sys
import logging
from pathlib import Path
from typing import Dict, List
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from appbuilder.core.errors import TranspileError
from appbuilder.core.models import Diagnostic, LogLevel, TranspileResult

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeContentStore:
    """Content store double that hands out predictable content ids."""

    def __init__(self, fail_on: str = None):
        self.calls: List[Path] = []
        self.fail_on = fail_on

    async def publish(self, path: Path) -> str:
        path = Path(path)
        self.calls.append(path)
        if self.fail_on and path.name == self.fail_on:
            raise RuntimeError(f"upload refused for {path.name}")
        return f"cid-{path.name}"


class RecordingTranspiler:
    """Transpiler double that records calls and can fail on a chosen file."""

    def __init__(self, fail_on_content: str = None, diagnostics: Dict[str, List[Diagnostic]] = None):
        self.calls = []
        self.fail_on_content = fail_on_content
        self.diagnostics = diagnostics or {}

    async def transpile(self, content, context, options):
        self.calls.append((content, context, options))
        if self.fail_on_content and self.fail_on_content in content:
            raise TranspileError("Unexpected token", line=2)
        return TranspileResult(
            code=f"/* built */ {content}",
            diagnostics=list(self.diagnostics.get(content, [])),
        )


def write_file(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def fake_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def recording_transpiler() -> RecordingTranspiler:
    return RecordingTranspiler()


@pytest.fixture
def base_app_config() -> Dict:
    """Base app configuration for tests."""
    return {
        'account': 'builder.near',
        'format': True,
        'ipfs': {
            'uploadApi': 'https://ipfs.example.test/add',
            'uploadApiHeaders': {'Authorization': 'Bearer token'},
            'gateway': 'https://ipfs.example.test/ipfs',
        },
        'accounts': {'deploy': 'deployer.near'},
        'overrides': {
            'testnet': {
                'ipfs': {'gateway': 'https://testnet-ipfs.example.test/ipfs'},
                'accounts': {'deploy': 'deployer.testnet'},
            }
        },
    }


@pytest.fixture
def app_src(tmp_path, base_app_config) -> Path:
    """A small app source tree with modules, widgets, assets and aliases."""
    src = tmp_path / "app"
    write_file(src / "bos.config.json", json.dumps(base_app_config))
    write_file(src / "aliases.json", json.dumps({'GATEWAY': 'near.social'}))
    write_file(src / "module" / "utils" / "format.ts", "export const fmt = 1;")
    write_file(src / "module" / "store.js", "export const store = {};")
    write_file(src / "widget" / "Home.jsx", "return <Home />;")
    write_file(src / "widget" / "nav" / "Bar.tsx", "return <Bar />;")
    write_file(src / "widget" / "README.md", "not a source file")
    write_file(src / "ipfs" / "logo.png", "png-bytes")
    write_file(src / "ipfs" / "img" / "bg.jpg", "jpg-bytes")
    return src


@pytest.fixture
def dest(tmp_path) -> Path:
    return tmp_path / "dist"


@pytest.fixture
def warning_diagnostic() -> Diagnostic:
    return Diagnostic(message="Unused variable", level=LogLevel.WARNING, line=3)
