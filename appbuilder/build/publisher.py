"""
Publishes new static assets to the content store.

The ledger (ipfs.json) maps each asset path, relative to the asset root, to
the content id it was published under. A path that is already in the ledger
is never uploaded again, even if its content changed on disk.
"""
import asyncio
import json
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging

from ..core.errors import AssetPublishError, BuildCancelledError, FileSystemError
from ..ipfs.client import ContentStore


class AssetLedger:
    """Reads and writes the path -> content id ledger file"""

    def __init__(self, ledger_path: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.ledger_path = Path(ledger_path)
        self.logger = logger or logging.getLogger(__name__)

    def load(self) -> Dict[str, str]:
        """
        Read the ledger.

        Returns:
            The ledger contents, or an empty dict if missing or corrupt
        """
        if not self.ledger_path.exists():
            return {}

        try:
            with open(self.ledger_path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            self.logger.warning(f"Ignoring unreadable ledger {self.ledger_path}: {e}")
            return {}

        if not isinstance(data, dict):
            self.logger.warning(f"Ignoring ledger {self.ledger_path}: expected an object")
            return {}

        return {key: value for key, value in data.items() if isinstance(value, str)}

    def save(self, data: Dict[str, str]) -> None:
        """Write the ledger with 2-space indentation"""
        try:
            self.ledger_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.ledger_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise FileSystemError(f"Failed to write ledger: {e}", self.ledger_path) from e

    def mirror_to(self, destination: Union[str, Path]) -> None:
        """Copy the ledger file to another location"""
        destination = Path(destination)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(self.ledger_path, destination)
        except OSError as e:
            raise FileSystemError(f"Failed to copy ledger to {destination}: {e}", destination) from e


class AssetPublisher:
    """Diffs the asset directory against the ledger and publishes unseen paths"""

    def __init__(
        self,
        ledger: AssetLedger,
        store: ContentStore,
        mirror_path: Optional[Union[str, Path]] = None,
        max_concurrent_uploads: int = 1,
        cancel_event: Optional[asyncio.Event] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize asset publisher.

        Args:
            ledger: Ledger to read and extend
            store: Content store client
            mirror_path: Where the ledger is copied after it changes
            max_concurrent_uploads: Upper bound on in-flight uploads
            cancel_event: Checked before each upload starts
        """
        self.ledger = ledger
        self.store = store
        self.mirror_path = Path(mirror_path) if mirror_path else None
        self.max_concurrent_uploads = max(1, max_concurrent_uploads)
        self.cancel_event = cancel_event
        self.logger = logger or logging.getLogger(__name__)
        # Entries added by the most recent publish() call
        self.published: Dict[str, str] = {}

    @staticmethod
    def list_assets(asset_root: Path) -> List[str]:
        """Asset paths relative to the root, '/' separated and sorted"""
        if not asset_root.exists():
            return []
        return sorted(
            path.relative_to(asset_root).as_posix()
            for path in asset_root.rglob("*")
            if path.is_file()
        )

    async def publish(self, asset_root: Union[str, Path]) -> Dict[str, str]:
        """
        Publish every asset not yet in the ledger.

        Args:
            asset_root: Directory holding the assets

        Returns:
            The ledger merged with newly published entries
        """
        asset_root = Path(asset_root)
        self.published = {}
        existing = self.ledger.load()
        pending = [path for path in self.list_assets(asset_root) if path not in existing]

        if not pending:
            self.logger.debug("No new assets to publish")
            return dict(existing)

        self.logger.info(f"Publishing {len(pending)} new asset(s)")
        uploads: Dict[str, str] = {}
        semaphore = asyncio.Semaphore(self.max_concurrent_uploads)

        async def upload(relative_path: str) -> None:
            async with semaphore:
                if self.cancel_event is not None and self.cancel_event.is_set():
                    raise BuildCancelledError("Build cancelled while publishing assets")
                local_path = asset_root / relative_path
                try:
                    cid = await self.store.publish(local_path)
                except AssetPublishError:
                    raise
                except Exception as e:
                    raise AssetPublishError(f"Failed to publish {relative_path}: {e}", local_path) from e
                uploads[relative_path] = cid
                self.logger.debug(f"Published {relative_path} -> {cid}")

        failure: Optional[BaseException] = None
        if self.max_concurrent_uploads == 1:
            for relative_path in pending:
                try:
                    await upload(relative_path)
                except BaseException as e:
                    failure = e
                    break
        else:
            results = await asyncio.gather(
                *(upload(path) for path in pending), return_exceptions=True
            )
            failure = next((r for r in results if isinstance(r, BaseException)), None)

        # Successful uploads are recorded even when a later one failed
        merged = self._commit(existing, uploads)
        if failure is not None:
            self.logger.error(f"Asset publishing failed: {failure}")
            raise failure
        return merged

    def _commit(self, existing: Dict[str, str], uploads: Dict[str, str]) -> Dict[str, str]:
        merged = dict(existing)
        for path in sorted(uploads):
            merged.setdefault(path, uploads[path])
        self.published = dict(uploads)

        if uploads:
            self.ledger.save(merged)
            if self.mirror_path is not None:
                self.ledger.mirror_to(self.mirror_path)
            self.logger.info(f"Recorded {len(uploads)} new asset(s) in {self.ledger.ledger_path.name}")

        return merged
