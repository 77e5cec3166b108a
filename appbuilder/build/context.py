from typing import Dict, List, Sequence

from ..config.config_loader import BuildConfig
from ..core.models import BuildContext, SourceUnit


class BuildContextBuilder:
    """Assembles the context shared by every transpile call in a build"""

    @staticmethod
    def module_names(module_units: Sequence[SourceUnit]) -> List[str]:
        """Module-relative paths without extension, e.g. foo/bar"""
        return [unit.logical_name for unit in module_units]

    def build(
        self,
        config: BuildConfig,
        module_units: Sequence[SourceUnit],
        asset_map: Dict[str, str],
        aliases: Dict[str, str]
    ) -> BuildContext:
        return BuildContext.create(
            config=config,
            modules=self.module_names(module_units),
            asset_map=asset_map,
            gateway=config.ipfs.gateway,
            aliases=aliases,
        )
