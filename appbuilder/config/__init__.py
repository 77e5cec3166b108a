from .config_loader import ConfigLoader, BuildConfig, IpfsConfig, AccountsConfig
from .settings_loader import GlobalSettings, load_settings
from .aliases import AliasMerger

__all__ = [
    'ConfigLoader',
    'BuildConfig',
    'IpfsConfig',
    'AccountsConfig',
    'GlobalSettings',
    'load_settings',
    'AliasMerger',
]
