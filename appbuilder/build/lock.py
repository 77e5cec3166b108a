"""
Build lock manager for builds sharing a destination directory.
"""
import asyncio
import time
from pathlib import Path
from typing import Optional
import logging
import os
import fcntl


class BuildLockManager:
    """
    Holds an exclusive lock on <dest>/.build.lock for the duration of a build.
    Uses file-based locking so separate processes are excluded too.
    """

    def __init__(self, dest_dir: Path, timeout: int = 30, logger: Optional[logging.Logger] = None):
        """
        Initialize build lock manager.

        Args:
            dest_dir: Build destination directory
            timeout: Lock acquisition timeout in seconds
        """
        self.dest_dir = Path(dest_dir)
        self.timeout = timeout
        self.lock_file_path = self.dest_dir / ".build.lock"
        self.lock_file = None
        self.logger = logger or logging.getLogger(__name__)

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release()
        return False

    async def acquire(self):
        """
        Acquire build lock with timeout.

        Raises:
            TimeoutError: If lock cannot be acquired within timeout
        """
        start_time = time.monotonic()
        self.dest_dir.mkdir(parents=True, exist_ok=True)

        self.logger.debug(f"Attempting to acquire build lock: {self.lock_file_path}")

        while True:
            lock_file = open(self.lock_file_path, 'a+')
            try:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                lock_file.close()
                elapsed = time.monotonic() - start_time

                if elapsed >= self.timeout:
                    self.logger.error(
                        f"Failed to acquire build lock after {self.timeout}s timeout"
                    )
                    raise TimeoutError(
                        f"Could not acquire build lock within {self.timeout}s. "
                        "Another build may be writing to the same destination."
                    )

                self.logger.debug(
                    f"Build lock held by another process, retrying... "
                    f"({elapsed:.1f}s / {self.timeout}s)"
                )
                await asyncio.sleep(0.5)
                continue
            except BaseException:
                lock_file.close()
                raise

            lock_file.seek(0)
            lock_file.truncate()
            lock_file.write(f"{os.getpid()}\n")
            lock_file.flush()
            self.lock_file = lock_file
            self.logger.debug("Build lock acquired")
            return

    async def release(self):
        """Release build lock, leaving the lock file in place for the next holder"""
        if not self.lock_file:
            return

        try:
            fcntl.flock(self.lock_file.fileno(), fcntl.LOCK_UN)
        finally:
            self.lock_file.close()
            self.lock_file = None

        self.logger.debug("Build lock released")
