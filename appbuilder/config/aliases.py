"""
Merges alias files into a single lookup table.
"""
import yaml
from pathlib import Path
from typing import Dict, Iterable, Optional, Union
import logging

from .config_loader import read_structured_file


class AliasMerger:
    """Builds the alias table from an ordered list of alias sources"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def load_source(self, path: Union[str, Path]) -> Dict[str, str]:
        """
        Load one alias source.

        Args:
            path: Path to a flat JSON/YAML mapping

        Returns:
            The mapping, or an empty dict if the file is missing or unreadable
        """
        path = Path(path)
        try:
            data = read_structured_file(path)
        except FileNotFoundError:
            self.logger.debug(f"Alias source not found: {path}")
            return {}
        except (OSError, ValueError, yaml.YAMLError) as e:
            self.logger.warning(f"Ignoring unreadable alias source {path}: {e}")
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            self.logger.warning(f"Ignoring alias source {path}: expected a mapping")
            return {}

        return {str(key): str(value) for key, value in data.items()}

    def merge(self, sources: Iterable[Union[str, Path]]) -> Dict[str, str]:
        """
        Merge alias sources in order; later sources override earlier ones.

        Args:
            sources: Ordered alias file paths

        Returns:
            Merged alias table
        """
        aliases: Dict[str, str] = {}
        for source in sources:
            aliases.update(self.load_source(source))
        self.logger.debug(f"Merged {len(aliases)} aliases")
        return aliases
