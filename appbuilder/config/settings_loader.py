import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass


@dataclass
class HttpConfig:
    """HTTP client configuration"""
    timeout: float = 30.0
    max_retries: int = 2


@dataclass
class PublishConfig:
    """Asset publishing configuration"""
    max_concurrent_uploads: int = 1
    ledger_filename: str = "ipfs.json"


@dataclass
class BuildSystemConfig:
    """Build system configuration"""
    config_filename: str = "bos.config.json"
    default_environment: str = "mainnet"
    lock_timeout: int = 30
    use_lock: bool = True


@dataclass
class GlobalSettings:
    """Tool settings shared by every build run from one process"""
    http: HttpConfig
    publish: PublishConfig
    build_system: BuildSystemConfig

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GlobalSettings':
        """Create GlobalSettings from dictionary"""
        return cls(
            http=HttpConfig(**data.get('http', {})),
            publish=PublishConfig(**data.get('publish', {})),
            build_system=BuildSystemConfig(**data.get('build_system', {}))
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'GlobalSettings':
        """Load GlobalSettings from YAML file"""
        path = Path(yaml_path)
        if not path.exists():
            return cls.default()

        with open(path, 'r') as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def default(cls) -> 'GlobalSettings':
        """Return default settings"""
        return cls(
            http=HttpConfig(),
            publish=PublishConfig(),
            build_system=BuildSystemConfig()
        )


def load_settings(settings_path: Optional[str] = None) -> GlobalSettings:
    """
    Load tool settings from a YAML file.
    If no path provided, looks for appbuilder.yaml in standard locations.
    """
    if settings_path:
        return GlobalSettings.from_yaml(settings_path)

    search_paths = [
        Path("./appbuilder.yaml"),
        Path("./config/appbuilder.yaml"),
    ]

    for path in search_paths:
        if path.exists():
            return GlobalSettings.from_yaml(str(path))

    return GlobalSettings.default()
