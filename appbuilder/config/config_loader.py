import json
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.errors import ConfigLoadError


DEFAULT_UPLOAD_API = "https://ipfs.near.social/add"
DEFAULT_GATEWAY = "https://ipfs.near.social/ipfs"


def read_structured_file(path: Path) -> Any:
    """Parse a .json file as JSON and anything else as YAML"""
    with open(path, 'r', encoding='utf-8') as file:
        if path.suffix == '.json':
            return json.load(file)
        return yaml.safe_load(file)


class IpfsConfig(BaseModel):
    """Content store settings"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    upload_api: str = Field(default=DEFAULT_UPLOAD_API, alias="uploadApi")
    upload_api_headers: Dict[str, str] = Field(default_factory=dict, alias="uploadApiHeaders")
    gateway: str = DEFAULT_GATEWAY


class AccountsConfig(BaseModel):
    """Deploy identities"""
    model_config = ConfigDict(frozen=True)

    deploy: str


class BuildConfig(BaseModel):
    """Resolved, environment-specific app configuration"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    account: Optional[str] = None
    format: bool = True
    aliases: Optional[List[str]] = None
    ipfs: IpfsConfig = Field(default_factory=IpfsConfig)
    accounts: AccountsConfig


class ConfigLoader:
    """Load and validate app configurations"""

    @staticmethod
    def load_from_file(file_path: Union[str, Path], environment: str = "mainnet") -> BuildConfig:
        """Load configuration from a JSON/YAML file and resolve it for an environment"""
        path = Path(file_path)
        try:
            config_dict = read_structured_file(path)
        except FileNotFoundError as e:
            raise ConfigLoadError(f"Config file not found: {path}", path) from e
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigLoadError(f"Failed to read config file {path}: {e}", path) from e

        if not isinstance(config_dict, dict):
            raise ConfigLoadError(f"Empty or invalid config file: {path}", path)

        return ConfigLoader.load_from_dict(config_dict, environment, path)

    @staticmethod
    def load_from_dict(
        config_dict: Dict[str, Any],
        environment: str = "mainnet",
        path: Optional[Path] = None
    ) -> BuildConfig:
        """Load configuration from a dictionary"""
        processed_config = dict(config_dict)
        overrides = processed_config.pop('overrides', None) or {}
        if not isinstance(overrides, dict):
            raise ConfigLoadError("'overrides' must be a mapping of environment to settings", path)

        env_overrides = overrides.get(environment) or {}
        if not isinstance(env_overrides, dict):
            raise ConfigLoadError(f"Overrides for '{environment}' must be a mapping", path)
        resolved = ConfigLoader._deep_merge(processed_config, env_overrides)

        # A bare top-level account doubles as the deploy account
        if 'accounts' not in resolved and resolved.get('account'):
            resolved['accounts'] = {'deploy': resolved['account']}

        try:
            return BuildConfig.model_validate(resolved)
        except ValidationError as e:
            issues = []
            for error in e.errors():
                field_path = ".".join(str(part) for part in error['loc'])
                issues.append(f"{field_path}: {error['msg']}")
            raise ConfigLoadError(
                "Configuration validation failed:\n" + "\n".join(issues), path
            ) from e

    @staticmethod
    def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = ConfigLoader._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
