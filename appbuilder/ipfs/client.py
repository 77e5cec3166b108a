import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import aiohttp

from ..core.errors import AssetPublishError


class ContentStore(Protocol):
    """Anything that can publish a local file and return its content id"""

    async def publish(self, path: Path) -> str:
        ...


def extract_cid(payload: Any) -> Optional[str]:
    """Pull the content id out of an upload API response body"""
    if not isinstance(payload, dict):
        return None
    for key in ("cid", "Hash", "hash"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class IpfsUploader:
    """
    Publishes files to an IPFS upload API over HTTP.
    Retries transport errors and 5xx responses, never 4xx.
    """

    def __init__(
        self,
        upload_api: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.upload_api = upload_api
        self.headers = dict(headers or {})
        self.timeout = timeout
        self.max_retries = max_retries
        self._session = session
        self._owns_session = session is None
        self.logger = logger or logging.getLogger(f"{__name__}.IpfsUploader")

    async def __aenter__(self) -> 'IpfsUploader':
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def publish(self, path: Path) -> str:
        """Upload one file and return its content id"""
        path = Path(path)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise AssetPublishError(f"Failed to read asset {path}: {e}", path) from e

        session = await self._ensure_session()
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._upload(session, path, content)
            except (aiohttp.ClientError, asyncio.TimeoutError, _RetryableStatus) as e:
                if attempt > self.max_retries:
                    raise AssetPublishError(
                        f"Failed to upload {path.name} after {attempt} attempt(s): {e}", path
                    ) from e
                delay = 0.5 * attempt
                self.logger.warning(
                    f"Upload of {path.name} failed ({e}), retrying in {delay:.1f}s "
                    f"({attempt}/{self.max_retries})"
                )
                await asyncio.sleep(delay)

    async def _upload(self, session: aiohttp.ClientSession, path: Path, content: bytes) -> str:
        form = aiohttp.FormData()
        form.add_field("file", content, filename=path.name)

        async with session.post(self.upload_api, data=form, headers=self.headers) as response:
            if response.status >= 500:
                raise _RetryableStatus(response.status)
            if response.status != 200:
                body = await response.text()
                raise AssetPublishError(
                    f"Upload of {path.name} rejected with status {response.status}: {body[:200]}", path
                )
            payload = await response.json(content_type=None)

        cid = extract_cid(payload)
        if not cid:
            raise AssetPublishError(f"Upload API returned no content id for {path.name}", path)
        self.logger.debug(f"Uploaded {path.name} -> {cid}")
        return cid


class _RetryableStatus(Exception):
    def __init__(self, status: int):
        super().__init__(f"server responded with status {status}")
        self.status = status
